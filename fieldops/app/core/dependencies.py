"""
Authentication dependencies for FastAPI.

Resolves a bearer token to the `(user_id, role, onboarding_complete)` tuple
the rest of the service works with.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fieldops.app.core.exceptions import AuthenticationError
from fieldops.app.core.jwt import decode_access_token
from fieldops.app.db.session import get_db
from fieldops.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    1. Validates JWT token signature and expiry
    2. Loads the synced user record by the token subject

    Returns:
        dict with user_id, sub, role and onboarding_complete

    Raises:
        HTTPException: 401 for a missing, invalid or expired token
        AuthenticationError: 401 when the subject has not been synced yet
    """
    token = credentials.credentials

    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    external_id = payload.get("sub")
    if not external_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. The user must have been synced from the identity provider
    result = await db.execute(select(User).where(User.external_id == external_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not synced from the identity provider")

    return {
        "user_id": user.id,
        "sub": user.external_id,
        "role": user.role.value,
        "onboarding_complete": user.onboarding_complete,
    }


async def get_token_subject(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> str:
    """
    Identity-provider subject of a valid token, without requiring a synced user.

    Onboarding uses this: it may run before the provider's webhook arrives.
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload["sub"]
