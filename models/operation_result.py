from typing import Any

from pydantic import BaseModel

from enums.error_code import ErrorCode


class OperationResult(BaseModel):
    """
    Outcome of a public service operation.

    Services never leak exceptions to the web layer; failures come back here with
    an error_code the HTTP layer maps to a status.
    """
    success: bool
    message: str | None = None
    error_code: ErrorCode | None = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success") -> 'OperationResult':
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error_code: ErrorCode) -> 'OperationResult':
        return cls(success=False, message=message, error_code=error_code)
