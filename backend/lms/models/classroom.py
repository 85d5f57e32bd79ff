"""Classroom and enrollment database models."""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from lms.database import Base


class Classroom(Base):
    __tablename__ = "classrooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False, index=True)
    description = Column(Text, nullable=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    teacher = relationship("Profile", back_populates="classrooms", foreign_keys=[created_by])
    enrollments = relationship("ClassroomStudent", back_populates="classroom", cascade="all, delete-orphan")
    materials = relationship("Material", back_populates="classroom", cascade="all, delete-orphan")
    quizzes = relationship("Quiz", back_populates="classroom", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Classroom(id={self.id}, name='{self.name}', created_by={self.created_by})>"


class ClassroomStudent(Base):
    __tablename__ = "classroom_students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    classroom_id = Column(Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    classroom = relationship("Classroom", back_populates="enrollments")
    student = relationship("Profile", back_populates="enrollments")

    __table_args__ = (
        UniqueConstraint("classroom_id", "student_id", name="uq_classroom_student"),
    )
