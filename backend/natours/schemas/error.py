"""
Natours Backend — Error Response Schemas
=========================================

What:  Pydantic models for every error envelope the API can return.
Why:   The envelopes are a contract surface; clients match on exact keys.

Envelopes:
    development              {status, error, message, stack}
    production, operational  {status, message}
    production, other        {status: "error", message: "Something went very wrong!"}
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Production envelope. Only trusted, user-safe text goes in `message`."""

    status: str = Field(description='"fail" for 4xx, "error" otherwise')
    message: str = Field(description="Human-readable error description")


class ErrorDetail(BaseModel):
    """Error attributes exposed in development responses."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Exception class name")
    status_code: int = Field(alias="statusCode")
    status: str
    is_operational: bool = Field(alias="isOperational")
    request_id: Optional[str] = Field(default=None, alias="requestId")


class DevelopmentErrorResponse(ErrorResponse):
    """Verbose envelope for development; intentionally leaks internals."""

    error: ErrorDetail
    stack: str = Field(description="Formatted traceback")
