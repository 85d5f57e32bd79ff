"""Pydantic schemas for quiz authoring and quiz sessions."""

from datetime import datetime
from typing import Optional, List, Dict, Union

from pydantic import BaseModel, Field, ConfigDict


class QuestionCreate(BaseModel):
    question_text: str = Field(..., min_length=1, max_length=2000)
    question_type: str = Field("mcq", pattern="^(mcq|short_answer)$")
    options: Optional[List[str]] = None
    correct_option: Optional[int] = Field(None, ge=0)
    correct_answer: Optional[str] = Field(None, max_length=500)


class QuizCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    time_limit_minutes: int = Field(30, ge=1, le=600)
    is_published: bool = True
    questions: List[QuestionCreate] = Field(..., min_length=1)


class QuestionResponse(BaseModel):
    id: int
    question_text: str
    question_type: str
    options: Optional[List[str]] = None
    correct_option: Optional[int] = None
    correct_answer: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QuizResponse(BaseModel):
    id: int
    classroom_id: int
    title: str
    time_limit_minutes: int
    is_published: bool
    created_by: Optional[int] = None
    created_at: datetime
    questions: List[QuestionResponse] = []

    model_config = ConfigDict(from_attributes=True)


class QuizListItem(BaseModel):
    id: int
    classroom_id: int
    title: str
    time_limit_minutes: int
    is_published: bool
    question_count: int
    created_at: datetime
    status: Optional[str] = None
    score: Optional[int] = None
    percentage: Optional[float] = None
    completed_at: Optional[datetime] = None


class QuizListResponse(BaseModel):
    quizzes: List[QuizListItem]


AnswerValue = Union[int, str, None]


class AnswerPayload(BaseModel):
    value: AnswerValue = None


class AdvancePayload(BaseModel):
    direction: int = Field(1, ge=-1, le=1)


class SessionQuestion(BaseModel):
    id: int
    question_text: str
    question_type: str
    options: Optional[List[str]] = None
    correct_option: Optional[int] = None
    correct_answer: Optional[str] = None


class GradedAnswerItem(BaseModel):
    question_id: int
    answer: Optional[str] = None
    is_correct: bool


class QuizSessionResponse(BaseModel):
    quiz_id: int
    student_id: int
    title: Optional[str] = None
    classroom_id: Optional[int] = None
    state: str
    closed: bool = False
    remaining_seconds: Optional[int] = None
    current_index: int
    question_count: int
    questions: List[SessionQuestion]
    answers: Dict[str, AnswerValue]
    score: Optional[int] = None
    percentage: Optional[float] = None
    graded: Optional[List[GradedAnswerItem]] = None
    attempt_id: Optional[int] = None
    completed_at: Optional[datetime] = None
    submitted_by_timer: bool = False
    last_error: Optional[str] = None
