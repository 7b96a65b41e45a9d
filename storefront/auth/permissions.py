# storefront/auth/permissions.py

from typing import Iterable, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class RoleChecker:
    """
    Check the caller's role against the roles allowed for an action
    """

    def __init__(self, allowed_roles: Iterable[str]):
        self.allowed_roles = {role.lower() for role in allowed_roles}

    def can(self, role: Optional[str]) -> bool:
        if role and role.lower() in self.allowed_roles:
            logger.debug(f"Role granted: {role}")
            return True
        logger.debug(f"Role denied: {role}")
        return False

    def require(self, role: Optional[str], custom_message: Optional[str] = None):
        """
        Require one of the allowed roles or raise HTTPException
        """
        if not self.can(role):
            message = custom_message or "Admin access required"
            logger.warning(f"Role check failed for role={role!r}: {message}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=message
            )
