"""Error body shared by every endpoint."""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class ApiErrorResponse(BaseModel):
    """Error response body, nested under ``detail`` like FastAPI's own errors."""

    error: ErrorDetail
