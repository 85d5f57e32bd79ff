"""Pydantic schemas for announcements, comments and assignments."""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)


class AnnouncementResponse(BaseModel):
    id: int
    classroom_id: int
    title: str
    content: str
    created_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AnnouncementListResponse(BaseModel):
    announcements: List[AnnouncementResponse]


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: int
    announcement_id: int
    author_id: int
    author_name: Optional[str] = None
    content: str
    created_at: datetime


class CommentListResponse(BaseModel):
    comments: List[CommentResponse]


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    due_date: Optional[datetime] = None
    file_url: Optional[str] = Field(None, max_length=500)


class AssignmentResponse(BaseModel):
    id: int
    classroom_id: int
    title: str
    content: str
    due_date: Optional[datetime] = None
    file_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AssignmentListResponse(BaseModel):
    assignments: List[AssignmentResponse]


class StudentAssignment(AssignmentResponse):
    classroom_name: Optional[str] = None
    overdue: bool = False


class StudentAssignmentListResponse(BaseModel):
    assignments: List[StudentAssignment]
