"""
Material API routes.

Routes:
    POST   /api/v1/materials/{material_id}/views   — Record a material view or video watch (student)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db
from lms.models.user import Profile
from lms.schemas.classroom import MaterialViewResponse
from lms.services.class_service import is_enrolled
from lms.services.material_service import get_material, record_view
from lms.middleware.rbac import require_student

router = APIRouter(prefix="/api/v1/materials", tags=["Materials"])


@router.post("/{material_id}/views", response_model=MaterialViewResponse, status_code=status.HTTP_201_CREATED)
async def create_material_view(
    material_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_student),
):
    """Repeated views are accepted and reported with ``recorded=false``."""
    material = await get_material(db, material_id)
    if not material:
        raise HTTPException(status_code=404, detail="Material not found")
    if not await is_enrolled(db, material.classroom_id, current_user.id):
        raise HTTPException(status_code=403, detail="Access denied")

    _, created = await record_view(db, material, current_user.id)
    return MaterialViewResponse(
        material_id=material.id,
        classroom_id=material.classroom_id,
        type=material.type,
        recorded=created,
    )
