"""
Assignment API routes.

Routes:
    GET    /api/v1/assignments/me   — Assignments across the student's classes, earliest due first
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db
from lms.models.user import Profile
from lms.schemas.announcement import StudentAssignment, StudentAssignmentListResponse
from lms.services.assignment_service import list_assignments_for_student
from lms.middleware.rbac import require_student

router = APIRouter(prefix="/api/v1/assignments", tags=["Assignments"])


@router.get("/me", response_model=StudentAssignmentListResponse)
async def my_assignments(
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_student),
):
    items = await list_assignments_for_student(db, current_user.id)
    return StudentAssignmentListResponse(assignments=[StudentAssignment(**item) for item in items])
