from typing import Any, Dict, Optional
from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    """HTTP error carrying a machine-readable code and extra envelope fields."""

    code: str = "Error"

    def __init__(
        self,
        status_code: int,
        detail: str,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.details = details
        self.extra = extra or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.detail, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        payload.update(self.extra)
        return payload

class ValidationFailedError(BaseAppException):
    code = "ValidationFailed"

    def __init__(self, detail: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail, details=details)

class DuplicateSlugError(BaseAppException):
    code = "DuplicateSlug"

    def __init__(self, slug: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(
            status_code=status_code,
            detail="Category with this slug already exists",
            details={"slug": slug},
        )

class NotFoundError(BaseAppException):
    code = "NotFound"

    def __init__(self, detail: str = "Category not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ParentNotFoundError(BaseAppException):
    code = "ParentNotFound"

    def __init__(self, detail: str = "Parent category not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ReassignTargetNotFoundError(BaseAppException):
    code = "ReassignTargetNotFound"

    def __init__(self, detail: str = "Reassign target category not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class SelfParentError(BaseAppException):
    code = "SelfParent"

    def __init__(self, detail: str = "Category cannot be its own parent"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class CircularReferenceError(BaseAppException):
    code = "CircularReference"

    def __init__(self, detail: str = "Cannot set a descendant as parent (circular reference)"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class HasChildrenError(BaseAppException):
    code = "HasChildren"

    def __init__(self, child_count: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Category has child categories. Use cascade=true to delete all, "
                "or reassignTo=<categoryId|null> to reassign children."
            ),
            extra={"childCount": child_count},
        )

class OrphanWouldResultError(BaseAppException):
    code = "OrphanWouldResult"

    def __init__(self, orphaned_count: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Some categories have child categories that would be orphaned",
            extra={
                "orphanedCount": orphaned_count,
                "hint": "Either include child categories in the deletion or reassign them first",
            },
        )
