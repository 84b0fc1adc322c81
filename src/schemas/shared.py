"""Shared base schemas and common models."""

from typing import Optional
from pydantic import BaseModel


class ErrorInfo(BaseModel):
    """Machine-readable code plus a human message."""

    code: str
    message: str
    field: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    success: bool = False
    error: ErrorInfo
    request_id: str
    timestamp: str


class MessageResponse(BaseModel):
    """Standard acknowledgement schema."""

    message: str
    file_id: Optional[str] = None
