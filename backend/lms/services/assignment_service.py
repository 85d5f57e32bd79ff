"""Assignment service: posting assignments and the student's due list."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.models.assignment import Assignment
from lms.models.classroom import Classroom, ClassroomStudent


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _due_order():
    # Undated assignments last.
    return (Assignment.due_date.is_(None), Assignment.due_date.asc(), Assignment.id.asc())


async def create_assignment(
    db: AsyncSession,
    *,
    classroom_id: int,
    teacher_id: int,
    title: str,
    content: str,
    due_date: Optional[datetime] = None,
    file_url: Optional[str] = None,
) -> Assignment:
    classroom = await db.get(Classroom, classroom_id)
    if not classroom:
        raise ValueError("Class not found")
    if classroom.created_by != teacher_id:
        raise ValueError("Not authorized")

    assignment = Assignment(
        classroom_id=classroom_id,
        title=title.strip(),
        content=content.strip(),
        due_date=_to_utc(due_date) if due_date else None,
        file_url=file_url or None,
        created_by=teacher_id,
    )
    db.add(assignment)
    await db.flush()
    await db.refresh(assignment)
    return assignment


async def list_assignments(db: AsyncSession, classroom_id: int) -> List[Assignment]:
    result = await db.execute(
        select(Assignment).where(Assignment.classroom_id == classroom_id).order_by(*_due_order())
    )
    return list(result.scalars().all())


async def list_assignments_for_student(
    db: AsyncSession,
    student_id: int,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Assignments across the student's classrooms, earliest due date first."""
    now = _to_utc(now or datetime.now(timezone.utc))
    result = await db.execute(
        select(Assignment, Classroom.name)
        .join(Classroom, Classroom.id == Assignment.classroom_id)
        .join(ClassroomStudent, ClassroomStudent.classroom_id == Assignment.classroom_id)
        .where(ClassroomStudent.student_id == student_id)
        .order_by(*_due_order())
    )
    return [
        {
            "id": assignment.id,
            "classroom_id": assignment.classroom_id,
            "classroom_name": classroom_name,
            "title": assignment.title,
            "content": assignment.content,
            "due_date": assignment.due_date,
            "file_url": assignment.file_url,
            "created_at": assignment.created_at,
            "overdue": assignment.due_date is not None and _to_utc(assignment.due_date) < now,
        }
        for assignment, classroom_name in result.all()
    ]
