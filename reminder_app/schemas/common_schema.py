from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope used by every JSON endpoint."""

    status: str
    message: str
    data: Optional[T] = None

    @classmethod
    def success(cls, message: str, data=None) -> "ApiResponse":
        return cls(status="success", message=message, data=data)

    @classmethod
    def error(cls, message: str, data=None) -> "ApiResponse":
        return cls(status="error", message=message, data=data)


class PageResponse(BaseModel, Generic[T]):
    content: List[T]
    current_page: int
    total_items: int
    total_pages: int
    size: int
