from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class APIModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageMeta(APIModel):
    total: int
    page: Optional[int] = None
    limit: Optional[int] = None
    total_pages: Optional[int] = None


class ApiResponse(APIModel, Generic[T]):
    """Uniform response envelope; unset fields are left out of the JSON"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    meta: Optional[PageMeta] = None
    updated_count: Optional[int] = None
    deleted_count: Optional[int] = None
