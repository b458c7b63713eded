"""
FastAPI dependencies: one database session per request and the session-cookie auth gate.
"""

from typing import AsyncIterator

from fastapi import Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from enums.user_type import UserType
from exceptions import UnauthorizedException, ForbiddenException

SESSION_CUSTOMER_ID = "customer_id"
SESSION_USERNAME = "username"
SESSION_USER_TYPE = "user_type"


class SessionUser(BaseModel):
    customer_id: int
    username: str
    user_type: UserType

    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    # The pooled connection goes back on every exit path, including exceptions
    async with request.app.state.database.session() as session:
        yield session


def get_session_user(request: Request) -> SessionUser | None:
    customer_id = request.session.get(SESSION_CUSTOMER_ID)
    if customer_id is None:
        return None
    return SessionUser(customer_id=customer_id,
                       username=request.session.get(SESSION_USERNAME, ""),
                       user_type=request.session.get(SESSION_USER_TYPE, UserType.CUSTOMER.value))


def require_customer(request: Request) -> SessionUser:
    user = get_session_user(request)
    if user is None:
        raise UnauthorizedException("Please log in first")
    return user


def require_admin(request: Request) -> SessionUser:
    user = require_customer(request)
    if not user.is_admin():
        raise ForbiddenException()
    return user


def store_session_user(request: Request, user: SessionUser) -> None:
    request.session.clear()
    request.session[SESSION_CUSTOMER_ID] = user.customer_id
    request.session[SESSION_USERNAME] = user.username
    request.session[SESSION_USER_TYPE] = user.user_type.value
