"""Learning material and view-event models."""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from lms.database import Base


class MaterialType(str, enum.Enum):
    DOCUMENT = "document"
    PDF = "pdf"
    LINK = "link"
    VIDEO = "video"


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    classroom_id = Column(Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False, default=MaterialType.DOCUMENT.value)
    url = Column(String(500), nullable=True)
    created_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    classroom = relationship("Classroom", back_populates="materials")

    @property
    def is_video(self) -> bool:
        return self.type == MaterialType.VIDEO.value


class MaterialView(Base):
    __tablename__ = "material_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    classroom_id = Column(Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    viewed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("student_id", "material_id", name="uq_material_view_student"),
        Index("ix_material_views_classroom_student", "classroom_id", "student_id"),
    )


class VideoView(Base):
    __tablename__ = "video_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    classroom_id = Column(Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    viewed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("student_id", "video_id", name="uq_video_view_student"),
        Index("ix_video_views_classroom_student", "classroom_id", "student_id"),
    )
