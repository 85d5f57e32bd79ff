"""User service: profile registration and lookups."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.models.user import Profile, UserRole
from lms.services.auth_service import hash_password


async def create_user(
    db: AsyncSession,
    email: str,
    full_name: str,
    password: str,
    role: str = UserRole.STUDENT.value,
) -> Profile:
    """Create a profile. Emails are unique and stored lower-cased."""
    email = email.strip().lower()
    existing = await db.execute(select(Profile).where(Profile.email == email))
    if existing.scalar_one_or_none():
        raise ValueError("Email already registered")

    user = Profile(
        email=email,
        full_name=full_name.strip(),
        password_hash=hash_password(password),
        role=UserRole(role),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[Profile]:
    """Get a profile by ID."""
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[Profile]:
    """Get a profile by email."""
    result = await db.execute(select(Profile).where(Profile.email == email.strip().lower()))
    return result.scalar_one_or_none()
