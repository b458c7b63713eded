import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

import config
from db import Database
from enums.error_code import ErrorCode
from exceptions import ShopException
from middleware.security_headers import SecurityHeadersMiddleware
from utils.error_handler import handle_service_error, handle_unexpected_error
from web.api_router import api_router
from web.responses import api_response, error_response, success_response

logger = logging.getLogger(__name__)


def create_app(database: Database) -> FastAPI:
    """
    Build the FastAPI application around an already constructed Database.

    The lifespan creates the schema on startup and closes the connection pool
    on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.create_all()
        logger.info("[Startup] E-shop API ready")
        yield
        logger.warning("Shutting down..")
        await database.dispose()
        logger.warning("Bye!")

    app = FastAPI(title="E-Shop API", lifespan=lifespan)
    app.state.database = database

    if config.SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware)
        logger.info("[Startup] Security headers middleware enabled")

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            # Session cookie has to travel with cross-origin calls
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Content-Type"],
        )
        logger.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
    else:
        logger.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.SESSION_SECRET,
        session_cookie=config.SESSION_COOKIE_NAME,
        max_age=config.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=config.SESSION_HTTPS_ONLY,
    )

    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return success_response({"status": "healthy"})

    @app.exception_handler(ShopException)
    async def shop_exception_handler(request: Request, exc: ShopException):
        result = handle_service_error(exc, f"{request.method} {request.url.path}")
        return error_response(result.message, result.error_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid parameter {location}: {first.get('msg')}" if location else first.get("msg")
        else:
            message = "Invalid request parameters"
        return error_response(message, ErrorCode.VALIDATION_ERROR)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            error_code = ErrorCode.NOT_FOUND
        elif exc.status_code >= 500:
            error_code = ErrorCode.INTERNAL_ERROR
        else:
            error_code = ErrorCode.VALIDATION_ERROR
        return api_response(False, str(exc.detail), None, error_code, exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        result = handle_unexpected_error(exc, f"{request.method} {request.url.path}")
        return error_response(result.message, result.error_code)

    return app
