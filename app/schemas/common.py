"""
Response envelopes shared by all endpoints
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class CamelModel(BaseModel):
    """Serializes snake_case attributes as camelCase JSON keys"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope"""
    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    """Error envelope"""
    success: bool = False
    message: str
    error: Optional[str] = None
