"""
Announcement comment API routes.

Routes:
    GET    /api/v1/announcements/{announcement_id}/comments   — Comment thread (owner/enrolled)
    POST   /api/v1/announcements/{announcement_id}/comments   — Add a comment (owner/enrolled)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db
from lms.models.user import Profile
from lms.schemas.announcement import CommentCreate, CommentListResponse, CommentResponse
from lms.services.announcement_service import (
    add_comment,
    can_discuss,
    get_announcement,
    list_comments,
)
from lms.middleware.rbac import get_current_user

router = APIRouter(prefix="/api/v1/announcements", tags=["Announcements"])


def _comment_response(comment, author_name) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        announcement_id=comment.announcement_id,
        author_id=comment.author_id,
        author_name=author_name,
        content=comment.content,
        created_at=comment.created_at,
    )


@router.get("/{announcement_id}/comments", response_model=CommentListResponse)
async def get_comments(
    announcement_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    announcement = await get_announcement(db, announcement_id)
    if not announcement:
        raise HTTPException(status_code=404, detail="Announcement not found")
    if not await can_discuss(db, announcement, current_user):
        raise HTTPException(status_code=403, detail="Access denied")
    comments = await list_comments(db, announcement_id)
    return CommentListResponse(comments=[_comment_response(c, name) for c, name in comments])


@router.post("/{announcement_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    announcement_id: int,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    announcement = await get_announcement(db, announcement_id)
    if not announcement:
        raise HTTPException(status_code=404, detail="Announcement not found")
    if not await can_discuss(db, announcement, current_user):
        raise HTTPException(status_code=403, detail="Access denied")
    try:
        comment = await add_comment(db, announcement, current_user, body.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _comment_response(comment, current_user.full_name)
