from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import ConfigDict, Field, validator

from storefront.schemas.common.response import APIModel
from storefront.utils.slugs import SLUG_PATTERN


def _normalize_slug(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class CategoryCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=150, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=1000)
    image: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[uuid.UUID] = None
    sort_order: int = 0
    is_active: bool = True
    is_featured: bool = False
    meta_title: Optional[str] = Field(None, max_length=200)
    meta_description: Optional[str] = Field(None, max_length=500)

    @validator("slug", pre=True)
    def normalize_slug(cls, v):
        return _normalize_slug(v)

    @validator("name")
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be blank")
        return v.strip()


class CategoryUpdate(APIModel):
    """Partial update; only fields present in the request body are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=150, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[uuid.UUID] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=200)
    meta_description: Optional[str] = None

    @validator("slug", pre=True)
    def normalize_slug(cls, v):
        return _normalize_slug(v)

    # May be omitted, but not cleared
    @validator("sort_order", "is_active", "is_featured", pre=True)
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class CategoryRead(APIModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    level: int
    sort_order: int
    is_active: bool
    is_featured: bool
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryDetail(CategoryRead):
    """Single category with optional one-level children and parent"""
    children: Optional[List[CategoryRead]] = None
    parent: Optional[CategoryRead] = None


class CategoryTreeNode(CategoryRead):
    children: List[CategoryTreeNode] = Field(default_factory=list)


# ---------- Bulk operations ----------

class CategoryBulkData(APIModel):
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    parent_id: Optional[uuid.UUID] = None


class CategoryBulkUpdate(APIModel):
    ids: List[uuid.UUID] = Field(..., min_length=1)
    data: CategoryBulkData

    @validator("data")
    def data_not_empty(cls, v):
        if not v.model_fields_set:
            raise ValueError("At least one field to update is required")
        return v


class CategoryBulkDelete(APIModel):
    ids: List[uuid.UUID] = Field(..., min_length=1)


class CategoryReorderItem(APIModel):
    id: uuid.UUID
    sort_order: int


class CategoryReorder(APIModel):
    action: Literal["reorder"]
    items: List[CategoryReorderItem] = Field(..., min_length=1)


CategoryTreeNode.model_rebuild()
