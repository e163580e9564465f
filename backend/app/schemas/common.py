"""Response envelope shared by every endpoint."""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """``{success, message, data}``, the success shape of every endpoint."""

    success: bool = True
    message: str = "Success"
    data: Optional[T] = None
