from typing import Any, Dict, Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from storefront.core.config import settings

def create_access_token(subject: Any, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed access token for a user id and role"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {
        "sub": str(subject),
        "role": role,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate access token"""
    payload = verify_token(token)
    if payload is None:
        return None

    # Check token type
    if payload.get("type") != "access":
        return None

    # jose validates exp itself, but reject tokens that never had one
    if payload.get("exp") is None:
        return None

    return payload
