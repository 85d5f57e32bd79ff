"""Announcement service: classroom announcements and their comment threads."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.models.announcement import Announcement, AnnouncementComment
from lms.models.classroom import Classroom
from lms.models.user import Profile, UserRole
from lms.services.class_service import is_enrolled


async def create_announcement(
    db: AsyncSession,
    *,
    classroom_id: int,
    teacher_id: int,
    title: str,
    content: str,
) -> Announcement:
    classroom = await db.get(Classroom, classroom_id)
    if not classroom:
        raise ValueError("Class not found")
    if classroom.created_by != teacher_id:
        raise ValueError("Not authorized")

    announcement = Announcement(
        classroom_id=classroom_id,
        title=title.strip(),
        content=content.strip(),
        created_by=teacher_id,
    )
    db.add(announcement)
    await db.flush()
    await db.refresh(announcement)
    return announcement


async def get_announcement(db: AsyncSession, announcement_id: int) -> Optional[Announcement]:
    return await db.get(Announcement, announcement_id)


async def list_announcements(db: AsyncSession, classroom_id: int) -> List[Announcement]:
    """Newest first."""
    result = await db.execute(
        select(Announcement)
        .where(Announcement.classroom_id == classroom_id)
        .order_by(Announcement.created_at.desc(), Announcement.id.desc())
    )
    return list(result.scalars().all())


async def can_discuss(db: AsyncSession, announcement: Announcement, user: Profile) -> bool:
    """The classroom owner and its enrolled students may read and write comments."""
    if user.role == UserRole.ADMIN:
        return True
    classroom = await db.get(Classroom, announcement.classroom_id)
    if user.role == UserRole.TEACHER:
        return classroom is not None and classroom.created_by == user.id
    return await is_enrolled(db, announcement.classroom_id, user.id)


async def add_comment(
    db: AsyncSession,
    announcement: Announcement,
    author: Profile,
    content: str,
) -> AnnouncementComment:
    if not await can_discuss(db, announcement, author):
        raise ValueError("Not authorized")
    text = content.strip()
    if not text:
        raise ValueError("Comment cannot be empty")

    comment = AnnouncementComment(announcement_id=announcement.id, author_id=author.id, content=text)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return comment


async def list_comments(db: AsyncSession, announcement_id: int) -> List[tuple]:
    """Oldest first, each paired with the author's name."""
    result = await db.execute(
        select(AnnouncementComment, Profile.full_name)
        .join(Profile, Profile.id == AnnouncementComment.author_id)
        .where(AnnouncementComment.announcement_id == announcement_id)
        .order_by(AnnouncementComment.created_at.asc(), AnnouncementComment.id.asc())
    )
    return [(comment, author_name) for comment, author_name in result.all()]
