from pydantic import BaseModel, Field
from typing import Any, Optional
import uuid


def new_request_id() -> str:
    """Generates a unique request ID for tracing."""
    return uuid.uuid4().hex


class SuccessResponse(BaseModel):
    """Envelope for every successful response: the payload under `data`."""
    success: bool = True
    request_id: str = Field(default_factory=new_request_id)
    data: Optional[Any] = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Envelope for every failed response; clients read `error.message`."""
    success: bool = False
    request_id: str = Field(default_factory=new_request_id)
    error: ErrorDetail
