"""
Quiz session API routes.

A session lives in memory from start until submit or abandon. The countdown
runs server side and submits the attempt when it reaches zero.

Routes:
    POST   /api/v1/quizzes/{quiz_id}/session                         — Start (or resume) a session
    GET    /api/v1/quizzes/{quiz_id}/session                         — Current session state
    PUT    /api/v1/quizzes/{quiz_id}/session/answers/{question_id}   — Record an answer
    POST   /api/v1/quizzes/{quiz_id}/session/advance                 — Move to the next/previous question
    POST   /api/v1/quizzes/{quiz_id}/session/submit                  — Grade and persist the attempt
    DELETE /api/v1/quizzes/{quiz_id}/session                         — Abandon without saving
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.api.deps import get_quiz_sessions, http_error
from lms.database import get_db
from lms.exceptions import LMSError
from lms.models.user import Profile
from lms.schemas.quiz import AdvancePayload, AnswerPayload, QuizSessionResponse
from lms.services.class_service import is_enrolled
from lms.services.quiz_service import get_quiz_by_id
from lms.services.session_registry import QuizSessionRegistry
from lms.middleware.rbac import require_student

router = APIRouter(prefix="/api/v1/quizzes", tags=["Quizzes"])


@router.post("/{quiz_id}/session", response_model=QuizSessionResponse, status_code=status.HTTP_201_CREATED)
async def start_quiz_session(
    quiz_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_student),
    sessions: QuizSessionRegistry = Depends(get_quiz_sessions),
):
    quiz = await get_quiz_by_id(db, quiz_id)
    if not quiz or not quiz.is_published:
        raise HTTPException(status_code=404, detail="Quiz not found")
    if not await is_enrolled(db, quiz.classroom_id, current_user.id):
        raise HTTPException(status_code=403, detail="Access denied")

    try:
        session = await sessions.start(quiz_id, current_user.id)
    except LMSError as exc:
        raise http_error(exc)
    return QuizSessionResponse(**session.snapshot())


@router.get("/{quiz_id}/session", response_model=QuizSessionResponse)
async def get_quiz_session(
    quiz_id: int,
    current_user: Profile = Depends(require_student),
    sessions: QuizSessionRegistry = Depends(get_quiz_sessions),
):
    try:
        session = sessions.get(quiz_id, current_user.id)
    except LMSError as exc:
        raise http_error(exc)
    return QuizSessionResponse(**session.snapshot())


@router.put("/{quiz_id}/session/answers/{question_id}", response_model=QuizSessionResponse)
async def record_quiz_answer(
    quiz_id: int,
    question_id: int,
    body: AnswerPayload,
    current_user: Profile = Depends(require_student),
    sessions: QuizSessionRegistry = Depends(get_quiz_sessions),
):
    try:
        session = sessions.get(quiz_id, current_user.id)
        session.record_answer(question_id, body.value)
    except LMSError as exc:
        raise http_error(exc)
    return QuizSessionResponse(**session.snapshot())


@router.post("/{quiz_id}/session/advance", response_model=QuizSessionResponse)
async def advance_quiz_session(
    quiz_id: int,
    body: AdvancePayload,
    current_user: Profile = Depends(require_student),
    sessions: QuizSessionRegistry = Depends(get_quiz_sessions),
):
    try:
        session = sessions.get(quiz_id, current_user.id)
        session.advance(body.direction)
    except LMSError as exc:
        raise http_error(exc)
    return QuizSessionResponse(**session.snapshot())


@router.post("/{quiz_id}/session/submit", response_model=QuizSessionResponse)
async def submit_quiz_session(
    quiz_id: int,
    current_user: Profile = Depends(require_student),
    sessions: QuizSessionRegistry = Depends(get_quiz_sessions),
):
    """Submitting twice returns the same result; nothing is written again."""
    try:
        session = sessions.get(quiz_id, current_user.id)
        await session.submit()
    except LMSError as exc:
        raise http_error(exc)
    return QuizSessionResponse(**session.snapshot())


@router.delete("/{quiz_id}/session", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_quiz_session(
    quiz_id: int,
    current_user: Profile = Depends(require_student),
    sessions: QuizSessionRegistry = Depends(get_quiz_sessions),
):
    try:
        await sessions.abandon(quiz_id, current_user.id)
    except LMSError as exc:
        raise http_error(exc)
