"""Pydantic schemas for classrooms, enrollment and materials."""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict


class ClassroomCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    description: Optional[str] = Field(None, max_length=500)


class ClassroomResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    code: str
    created_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClassroomListResponse(BaseModel):
    classes: List[ClassroomResponse]
    total: int


class JoinClassroomRequest(BaseModel):
    code: str = Field(..., min_length=4, max_length=20)


class ClassroomStudentInfo(BaseModel):
    id: int
    full_name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class ClassroomStudentListResponse(BaseModel):
    students: List[ClassroomStudentInfo]
    total: int


class MaterialCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: str = Field("document", pattern="^(document|pdf|link|video)$")
    url: Optional[str] = Field(None, max_length=500)


class MaterialResponse(BaseModel):
    id: int
    classroom_id: int
    title: str
    type: str
    url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MaterialListResponse(BaseModel):
    materials: List[MaterialResponse]


class MaterialViewResponse(BaseModel):
    material_id: int
    classroom_id: int
    type: str
    recorded: bool
