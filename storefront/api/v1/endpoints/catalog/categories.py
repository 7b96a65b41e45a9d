import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional, Union
from storefront.api.dependencies import CurrentUser, require_admin
from storefront.core.config import settings
from storefront.core.database import get_async_session
from storefront.core.logging import log_user_action
from storefront.schemas.catalog.category import (
    CategoryCreate,
    CategoryDetail,
    CategoryRead,
    CategoryTreeNode,
    CategoryUpdate,
)
from storefront.schemas.common.response import ApiResponse, PageMeta
from storefront.services.catalog.category_service import CategoryService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[Union[List[CategoryTreeNode], List[CategoryRead]]],
    response_model_exclude_unset=True,
)
async def list_categories(
    include_inactive: bool = Query(False, alias="includeInactive"),
    parent_id: Optional[str] = Query(None, alias="parentId"),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    level: Optional[int] = Query(None, ge=0),
    tree: bool = Query(False),
    sort_by: str = Query("sortOrder", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_async_session),
):
    """List categories, or the full nested tree with tree=true"""
    service = CategoryService(session)
    if tree:
        result = await service.get_category_tree(include_inactive=include_inactive)
    else:
        result = await service.list_categories(
            include_inactive=include_inactive,
            parent_id=parent_id,
            featured=featured,
            search=search,
            level=level,
            sort_by=sort_by,
            sort_order=sort_order.lower(),
            page=page,
            limit=limit,
        )
        result["data"] = [CategoryRead.model_validate(c) for c in result["data"]]
    return ApiResponse(success=True, data=result["data"], meta=PageMeta(**result["meta"]))


@router.post(
    "",
    response_model=ApiResponse[CategoryRead],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    category_data: CategoryCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Create a new category (admin only)"""
    service = CategoryService(session)
    category = await service.create_category(category_data)
    log_user_action(current_user.id, "create", "category", category.category_id)
    return ApiResponse(
        success=True,
        data=CategoryRead.model_validate(category),
        message="Category created successfully",
    )


@router.get("/{id_or_slug}", response_model=ApiResponse[CategoryDetail], response_model_exclude_unset=True)
async def get_category(
    id_or_slug: str,
    include_children: bool = Query(False, alias="includeChildren"),
    include_parent: bool = Query(False, alias="includeParent"),
    session: AsyncSession = Depends(get_async_session),
):
    """Get a category by id or slug"""
    service = CategoryService(session)
    category = await service.get_category_detail(
        id_or_slug,
        include_children=include_children,
        include_parent=include_parent,
    )
    return ApiResponse(success=True, data=category)


@router.api_route(
    "/{category_id}",
    methods=["PUT", "PATCH"],
    response_model=ApiResponse[CategoryRead],
    response_model_exclude_unset=True,
)
async def update_category(
    category_id: uuid.UUID,
    category_data: CategoryUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Update a category; moving it re-levels its whole subtree"""
    service = CategoryService(session)
    category = await service.update_category(category_id, category_data)
    log_user_action(current_user.id, "update", "category", category_id)
    return ApiResponse(success=True, data=CategoryRead.model_validate(category))


@router.delete("/{category_id}", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def delete_category(
    category_id: uuid.UUID,
    cascade: bool = Query(False),
    reassign_to: Optional[str] = Query(None, alias="reassignTo"),
    session: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Delete a category; children need cascade=true or reassignTo=<id|null>"""
    service = CategoryService(session)
    deleted = await service.delete_category(category_id, cascade=cascade, reassign_to=reassign_to)
    log_user_action(current_user.id, "delete", "category", category_id)
    return ApiResponse(success=True, message="Category deleted successfully", deleted_count=deleted)
