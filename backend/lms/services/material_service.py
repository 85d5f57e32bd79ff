"""Material service: material metadata and view-event capture."""

from typing import Optional, List, Tuple, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.models.classroom import Classroom
from lms.models.material import Material, MaterialType, MaterialView, VideoView
from lms.services.store import ViewRecord, ViewTable


async def create_material(
    db: AsyncSession,
    *,
    classroom_id: int,
    teacher_id: int,
    title: str,
    material_type: str,
    url: Optional[str] = None,
) -> Material:
    classroom = await db.get(Classroom, classroom_id)
    if not classroom:
        raise ValueError("Class not found")
    if classroom.created_by != teacher_id:
        raise ValueError("Not authorized")
    try:
        kind = MaterialType(material_type)
    except ValueError as exc:
        raise ValueError(f"Unsupported material type: {material_type}") from exc

    material = Material(
        classroom_id=classroom_id,
        title=title.strip(),
        type=kind.value,
        url=url,
        created_by=teacher_id,
    )
    db.add(material)
    await db.flush()
    await db.refresh(material)
    return material


async def get_material(db: AsyncSession, material_id: int) -> Optional[Material]:
    return await db.get(Material, material_id)


async def list_materials(db: AsyncSession, classroom_id: int) -> List[Material]:
    result = await db.execute(
        select(Material)
        .where(Material.classroom_id == classroom_id)
        .order_by(Material.created_at.desc(), Material.id.desc())
    )
    return list(result.scalars().all())


async def record_view(
    db: AsyncSession,
    material: Material,
    student_id: int,
) -> Tuple[Union[MaterialView, VideoView], bool]:
    """Record that a student opened a material or watched a video.

    Returns ``(view, created)``. A repeated view returns the existing row
    with ``created=False``.
    """
    if material.is_video:
        model, column = VideoView, VideoView.video_id
    else:
        model, column = MaterialView, MaterialView.material_id

    existing = await db.execute(
        select(model).where(model.student_id == student_id, column == material.id)
    )
    view = existing.scalars().first()
    if view:
        return view, False

    fields = {"video_id": material.id} if material.is_video else {"material_id": material.id}
    view = model(student_id=student_id, classroom_id=material.classroom_id, **fields)
    db.add(view)
    try:
        await db.flush()
    except IntegrityError:
        # Concurrent duplicate; the other insert won.
        await db.rollback()
        existing = await db.execute(
            select(model).where(model.student_id == student_id, column == material.id)
        )
        return existing.scalars().first(), False
    return view, True


async def list_views(db: AsyncSession, table: ViewTable, classroom_id: int) -> List[ViewRecord]:
    if table == ViewTable.VIDEO_VIEWS:
        query = select(VideoView.student_id, VideoView.classroom_id, VideoView.video_id)
        query = query.where(VideoView.classroom_id == classroom_id)
    else:
        query = select(MaterialView.student_id, MaterialView.classroom_id, MaterialView.material_id)
        query = query.where(MaterialView.classroom_id == classroom_id)
    result = await db.execute(query)
    return [ViewRecord(int(row[0]), int(row[1]), int(row[2])) for row in result.all()]
