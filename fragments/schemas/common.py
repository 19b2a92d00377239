"""Common schemas used across multiple endpoints."""

from typing import Literal

from pydantic import BaseModel


class StatusResponse(BaseModel):
    """Success envelope without payload."""
    status: Literal["ok"] = "ok"


class ErrorDetail(BaseModel):
    code: int
    message: str


class ErrorResponse(BaseModel):
    """Error envelope."""
    status: Literal["error"] = "error"
    error: ErrorDetail

    @classmethod
    def build(cls, code: int, message: str) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=code, message=message))


class HealthResponse(BaseModel):
    """Response model for the root health check."""
    status: Literal["ok"] = "ok"
    service: str
    version: str
