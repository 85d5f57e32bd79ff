"""
Authentication API routes.

Routes:
    POST   /api/v1/auth/register   — Register a student or teacher profile
    POST   /api/v1/auth/sessions   — Create session (login)
    GET    /api/v1/auth/me         — Get current authenticated user
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db
from lms.models.user import Profile
from lms.schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)
from lms.services.auth_service import authenticate_user, create_access_token
from lms.services.user_service import create_user
from lms.middleware.rbac import get_current_user

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await create_user(
            db,
            email=body.email,
            full_name=body.full_name,
            password=body.password,
            role=body.role,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserResponse.model_validate(user)


@router.post("/sessions", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a new authentication session (login). Returns a JWT access token and the profile."""
    user, error = await authenticate_user(db, body.email, body.password)
    if error:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error,
        )

    access_token = create_access_token(user.id, user.role.value)
    return LoginResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Profile = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)
