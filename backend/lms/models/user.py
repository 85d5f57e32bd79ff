"""Profile database model with the role enum."""

import enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, DateTime, Enum, Index
)
from sqlalchemy.orm import relationship
from lms.database import Base


class UserRole(str, enum.Enum):
    """System roles."""
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(120), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(120), nullable=False)

    role = Column(Enum(UserRole), nullable=False, default=UserRole.STUDENT, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    classrooms = relationship("Classroom", back_populates="teacher", foreign_keys="Classroom.created_by")
    enrollments = relationship("ClassroomStudent", back_populates="student", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_profiles_role_name", "role", "full_name"),
    )

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role={self.role})>"
