"""
JSON envelope shared by every API endpoint.

    {"success": true, "message": "...", "data": {...}, "timestamp": 1700000000000}

Failed responses add "errorCode". Keys inside "data" are camelCase; money
values are serialized as decimal strings so no precision is lost.
"""

import time
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from enums.error_code import ErrorCode
from models.operation_result import OperationResult

STATUS_BY_ERROR_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAVAILABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.OUT_OF_STOCK: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INSUFFICIENT_STOCK: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.ACCOUNT_DISABLED: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {to_camel(key) if isinstance(key, str) else key: camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [camelize(item) for item in value]
    return value


def api_response(success: bool,
                 message: str | None,
                 data: Any = None,
                 error_code: ErrorCode | None = None,
                 status_code: int = status.HTTP_200_OK) -> JSONResponse:
    content = {
        "success": success,
        "message": message,
        "data": camelize(jsonable_encoder(data)),
        "timestamp": int(time.time() * 1000),
    }
    if error_code is not None:
        content["errorCode"] = error_code.value
    return JSONResponse(status_code=status_code, content=content)


def success_response(data: Any = None, message: str = "Success") -> JSONResponse:
    return api_response(True, message, data)


def error_response(message: str, error_code: ErrorCode) -> JSONResponse:
    return api_response(False, message, None, error_code,
                        STATUS_BY_ERROR_CODE.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR))


def result_response(result: OperationResult, data: Any = None) -> JSONResponse:
    """Render a service OperationResult; `data` overrides result.data on success."""
    if not result.success:
        return error_response(result.message, result.error_code or ErrorCode.INTERNAL_ERROR)
    return success_response(result.data if data is None else data, result.message or "Success")
