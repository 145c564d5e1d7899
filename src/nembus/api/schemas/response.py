"""Standard response envelope used by handlers."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Envelope ``{statusCode, message, data}``.

    ``statusCode`` mirrors the HTTP status of the response.
    """

    statusCode: int = Field(..., description="HTTP status code")  # noqa: N815
    message: str = Field(..., description="Human-readable outcome")
    data: T | None = Field(default=None, description="Payload")

    @classmethod
    def ok(cls, data: Any = None, message: str = "success", status_code: int = 200) -> "APIResponse":
        return cls(statusCode=status_code, message=message, data=data)

    @classmethod
    def error(cls, status_code: int, message: str, data: Any = None) -> "APIResponse":
        return cls(statusCode=status_code, message=message, data=data)
