"""Classroom service: creation, invite codes and enrollment."""

import secrets
import string
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.config import settings
from lms.models.classroom import Classroom, ClassroomStudent
from lms.models.user import Profile, UserRole

_INVITE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: Optional[int] = None) -> str:
    size = length or settings.INVITE_CODE_LENGTH
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(size))


async def create_classroom(
    db: AsyncSession,
    name: str,
    teacher_id: int,
    description: Optional[str] = None,
) -> Classroom:
    """Create a classroom owned by a teacher, with a fresh invite code."""
    teacher = await db.get(Profile, teacher_id)
    if not teacher or teacher.role != UserRole.TEACHER:
        raise ValueError("Teacher not found")

    code = generate_invite_code()
    while await get_classroom_by_code(db, code):
        code = generate_invite_code()

    classroom = Classroom(
        name=name.strip(),
        description=description,
        code=code,
        created_by=teacher_id,
    )
    db.add(classroom)
    await db.flush()
    await db.refresh(classroom)
    return classroom


async def get_classroom_by_id(db: AsyncSession, class_id: int) -> Optional[Classroom]:
    return await db.get(Classroom, class_id)


async def get_classroom_by_code(db: AsyncSession, code: str) -> Optional[Classroom]:
    result = await db.execute(select(Classroom).where(Classroom.code == code.strip().upper()))
    return result.scalar_one_or_none()


async def list_classrooms_for_teacher(db: AsyncSession, teacher_id: int) -> List[Classroom]:
    result = await db.execute(
        select(Classroom)
        .where(Classroom.created_by == teacher_id)
        .order_by(Classroom.created_at.desc())
    )
    return list(result.scalars().all())


async def list_classrooms_for_student(db: AsyncSession, student_id: int) -> List[Classroom]:
    result = await db.execute(
        select(Classroom)
        .join(ClassroomStudent, ClassroomStudent.classroom_id == Classroom.id)
        .where(ClassroomStudent.student_id == student_id)
        .order_by(ClassroomStudent.joined_at.asc(), ClassroomStudent.id.asc())
    )
    return list(result.scalars().all())


async def is_enrolled(db: AsyncSession, class_id: int, student_id: int) -> bool:
    result = await db.execute(
        select(ClassroomStudent.id).where(
            ClassroomStudent.classroom_id == class_id,
            ClassroomStudent.student_id == student_id,
        )
    )
    return result.first() is not None


async def join_classroom(db: AsyncSession, code: str, student_id: int) -> Classroom:
    """Enroll a student using a classroom invite code."""
    classroom = await get_classroom_by_code(db, code)
    if not classroom:
        raise ValueError("Invalid classroom code")
    if await is_enrolled(db, classroom.id, student_id):
        raise ValueError("You have already joined this classroom")

    db.add(ClassroomStudent(classroom_id=classroom.id, student_id=student_id))
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ValueError("You have already joined this classroom") from exc
    return classroom


async def list_students(db: AsyncSession, class_id: int) -> List[Profile]:
    """Enrolled students in enrollment order."""
    result = await db.execute(
        select(Profile)
        .join(ClassroomStudent, ClassroomStudent.student_id == Profile.id)
        .where(ClassroomStudent.classroom_id == class_id)
        .order_by(ClassroomStudent.joined_at.asc(), ClassroomStudent.id.asc())
    )
    return list(result.scalars().all())
