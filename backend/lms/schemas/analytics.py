"""Analytics schemas: classroom performance and student progress."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class StudentMetric(BaseModel):
    student_id: int
    full_name: str
    email: str
    materials_viewed: int
    videos_watched: int
    material_pct: float
    video_pct: float
    quizzes_taken: int
    quiz_avg: float
    overall_score: int

    model_config = ConfigDict(from_attributes=True)


class ClassAveragesResponse(BaseModel):
    materials: float
    videos: float
    quizzes: float
    overall: float


class ClassroomPerformanceResponse(BaseModel):
    classroom_id: int
    total_materials: int
    total_videos: int
    total_quizzes: int
    students: List[StudentMetric]
    averages: ClassAveragesResponse


class SubjectProgress(BaseModel):
    classroom_id: int
    name: str
    average: float
    quizzes_completed: int
    quizzes_pending: int


class RecentAttempt(BaseModel):
    quiz_id: int
    title: str
    classroom_id: int
    classroom_name: Optional[str] = None
    score: int
    total_questions: int
    percentage: float
    completed_at: Optional[datetime] = None


class StudentProgressResponse(BaseModel):
    average: float
    quizzes_completed: int
    quizzes_pending: int
    subjects: List[SubjectProgress]
    recent_attempts: List[RecentAttempt]
