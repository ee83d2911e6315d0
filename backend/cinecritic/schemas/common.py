"""
Response envelope shared by every endpoint.
"""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """{"success": ..., "data": ..., "message": ..., "meta": ...}"""

    success: bool = True
    data: DataT | None = None
    message: str | None = None
    meta: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    code: str
    detail: Any | None = None
