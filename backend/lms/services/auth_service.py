"""Authentication service: JWT tokens, password hashing, and login."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.config import settings
from lms.models.user import Profile

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access",
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises JWTError on failure."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Invalid token type")
    return payload


async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[Optional[Profile], Optional[str]]:
    """
    Authenticate a profile by email and password.
    Returns (profile, error_message). On success, error_message is None.
    """
    result = await db.execute(select(Profile).where(Profile.email == email.strip().lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.password_hash):
        return None, "Invalid email or password"

    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()
    return user, None
