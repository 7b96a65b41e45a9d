from typing import Any, Dict
from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.api.dependencies import CurrentUser, require_admin
from storefront.core.database import get_async_session
from storefront.core.exceptions import ValidationFailedError
from storefront.core.logging import log_user_action
from storefront.schemas.catalog.category import CategoryBulkDelete, CategoryBulkUpdate, CategoryReorder
from storefront.schemas.common.response import ApiResponse
from storefront.services.catalog.category_service import CategoryService

router = APIRouter()


def _validate(schema, payload: Dict[str, Any]):
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationFailedError(details=e.errors(include_url=False, include_context=False))


@router.patch("", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def bulk_update_categories(
    payload: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Bulk update flags/parent, or reorder when action == "reorder" """
    service = CategoryService(session)

    if payload.get("action") == "reorder":
        reorder = _validate(CategoryReorder, payload)
        updated = await service.reorder(reorder)
        log_user_action(current_user.id, "reorder", f"{updated} categories")
        return ApiResponse(
            success=True,
            message=f"{updated} categories reordered successfully",
            updated_count=updated,
        )

    bulk = _validate(CategoryBulkUpdate, payload)
    updated = await service.bulk_update(bulk)
    log_user_action(current_user.id, "bulk_update", f"{updated} categories")
    return ApiResponse(
        success=True,
        message=f"{updated} categories updated successfully",
        updated_count=updated,
    )


@router.delete("", response_model=ApiResponse[None], response_model_exclude_unset=True)
async def bulk_delete_categories(
    payload: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(require_admin),
):
    """Bulk delete; refuses when children outside the batch would be orphaned"""
    bulk = _validate(CategoryBulkDelete, payload)
    service = CategoryService(session)
    deleted = await service.bulk_delete(bulk.ids)
    log_user_action(current_user.id, "bulk_delete", f"{deleted} categories")
    return ApiResponse(
        success=True,
        message=f"{deleted} categories deleted successfully",
        deleted_count=deleted,
    )
