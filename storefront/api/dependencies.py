from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from storefront.auth.jwt_handler import decode_access_token
from storefront.auth.permissions import RoleChecker
from storefront.core.config import settings
import logging

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


class CurrentUser(BaseModel):
    """Caller identity resolved from the bearer token"""
    id: str
    role: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Get current authenticated user"""
    if credentials is None:
        raise _unauthorized("Authentication required")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid authentication credentials")

    user = CurrentUser(id=str(user_id), role=str(payload.get("role") or ""))
    request.state.current_user = user
    return user


def require_roles(*roles: str):
    """
    Dependency to require one of the given roles for an endpoint

    Examples:
        require_roles("admin", "super_admin")
    """
    checker = RoleChecker(roles)

    async def role_dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        checker.require(current_user.role)
        return current_user

    return role_dependency


require_admin = require_roles(*settings.ADMIN_ROLES)
