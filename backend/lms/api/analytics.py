"""
Analytics API routes.

Routes:
    GET    /api/v1/analytics/classes/{class_id}/performance   — Per-student engagement table (owner/admin)
    GET    /api/v1/analytics/me/progress                      — Quiz progress for the current student
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lms.api.deps import get_store, http_error
from lms.database import get_db
from lms.exceptions import LMSError
from lms.models.user import Profile, UserRole
from lms.schemas.analytics import ClassroomPerformanceResponse, StudentProgressResponse
from lms.services.analytics_service import get_classroom_performance, get_student_progress
from lms.services.class_service import get_classroom_by_id
from lms.services.store import LearningStore
from lms.middleware.rbac import require_admin_or_teacher, require_student

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


@router.get("/classes/{class_id}/performance", response_model=ClassroomPerformanceResponse)
async def classroom_performance(
    class_id: int,
    ranked: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_admin_or_teacher),
    store: LearningStore = Depends(get_store),
):
    """Students appear in enrollment order unless ``ranked`` is set."""
    classroom = await get_classroom_by_id(db, class_id)
    if not classroom:
        raise HTTPException(status_code=404, detail="Class not found")
    if current_user.role == UserRole.TEACHER and classroom.created_by != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    try:
        performance = await get_classroom_performance(store, class_id, ranked=ranked)
    except LMSError as exc:
        raise http_error(exc)
    return ClassroomPerformanceResponse(**asdict(performance))


@router.get("/me/progress", response_model=StudentProgressResponse)
async def my_progress(
    current_user: Profile = Depends(require_student),
    store: LearningStore = Depends(get_store),
):
    try:
        progress = await get_student_progress(store, current_user.id)
    except LMSError as exc:
        raise http_error(exc)
    return StudentProgressResponse(**progress)
