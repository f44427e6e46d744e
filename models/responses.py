"""Response envelope shared by every API endpoint"""
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from models.expense import Pagination

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    pagination: Optional[Pagination] = None
    error: Optional[Any] = None


def error_body(message: str, error: Any = None, **extra: Any) -> dict:
    """JSON body for a failed request."""
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    body.update(extra)
    return body
