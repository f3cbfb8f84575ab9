"""
Bearer-token validation for API routes.

Tokens are HS256 JWTs signed by the web app's login flow; the ``sub`` claim
is the user id that keys every progression table.

Usage:
    @router.get("/protected")
    def protected_endpoint(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from config import get_settings

logger = logging.getLogger("auth.middleware")

security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Verify signature and expiry; return the claims."""
    settings = get_settings()

    if not settings.jwt_secret:
        raise HTTPException(status_code=401, detail="Authentication not configured")

    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    FastAPI dependency: validate the bearer token and return its subject.
    Raises 401 if the token is missing or invalid.
    """
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    claims = decode_token(credentials.credentials)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: no sub claim")
    return str(user_id)
