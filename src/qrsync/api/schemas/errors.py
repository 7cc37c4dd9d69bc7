"""Error envelope returned for transport-level webhook rejections."""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured API error content."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Common API error envelope."""

    error: ErrorDetail
