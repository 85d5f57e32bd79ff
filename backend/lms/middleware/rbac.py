"""Role-Based Access Control dependencies for FastAPI."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db
from lms.models.user import Profile
from lms.services.auth_service import decode_access_token
from lms.services.user_service import get_user_by_id

# Bearer token extractor
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """
    Extract and validate the JWT token from the Authorization header.
    Returns the authenticated Profile.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def require_role(*roles: str):
    """
    Dependency factory that creates a role-checking dependency.
    Usage: Depends(require_role("ADMIN", "TEACHER"))
    """
    async def role_checker(
        current_user: Profile = Depends(get_current_user),
    ) -> Profile:
        if current_user.role.value not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role(s): {', '.join(roles)}",
            )
        return current_user
    return role_checker


# Convenience dependencies
require_teacher = require_role("TEACHER")
require_student = require_role("STUDENT")
require_admin_or_teacher = require_role("ADMIN", "TEACHER")
