"""Quiz service: authoring, lookups and attempt persistence."""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Iterable, Sequence

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from lms.models.classroom import Classroom
from lms.models.quiz import Quiz, Question, QuestionType, QuizAttempt, QuizAnswer
from lms.services.grading import GradedAnswer, score_percentage


def _normalize_quiz_options(options: Optional[List[str]]) -> List[str]:
    normalized = [str(option).strip() for option in (options or [])]
    if len(normalized) < 2:
        raise ValueError("Multiple choice questions need at least 2 options")
    if any(not option for option in normalized):
        raise ValueError("Options cannot be empty")
    return normalized


def _normalize_time_limit(time_limit_minutes: Any) -> int:
    try:
        minutes = int(time_limit_minutes)
    except (TypeError, ValueError) as exc:
        raise ValueError("Time limit must be a whole number of minutes") from exc
    if minutes < 1:
        raise ValueError("Time limit must be at least 1 minute")
    return minutes


def build_question(position: int, payload: Dict[str, Any]) -> Question:
    text = str(payload.get("question_text") or "").strip()
    if not text:
        raise ValueError(f"Question {position + 1} has no text")

    question_type = payload.get("question_type") or QuestionType.MCQ.value
    if question_type == QuestionType.MCQ.value:
        options = _normalize_quiz_options(payload.get("options"))
        correct_option = payload.get("correct_option")
        if correct_option is None or not 0 <= int(correct_option) < len(options):
            raise ValueError(f"Question {position + 1}: correct option is out of range")
        return Question(
            position=position,
            question_text=text,
            question_type=question_type,
            options=options,
            correct_option=int(correct_option),
            correct_answer=None,
        )
    if question_type == QuestionType.SHORT_ANSWER.value:
        correct_answer = str(payload.get("correct_answer") or "").strip()
        if not correct_answer:
            raise ValueError(f"Question {position + 1}: correct answer is required")
        return Question(
            position=position,
            question_text=text,
            question_type=question_type,
            options=None,
            correct_option=None,
            correct_answer=correct_answer,
        )
    raise ValueError(f"Unsupported question type: {question_type}")


async def create_quiz(
    db: AsyncSession,
    *,
    classroom_id: int,
    teacher_id: int,
    title: str,
    time_limit_minutes: int,
    questions: List[Dict[str, Any]],
    is_published: bool = True,
) -> Quiz:
    """Create a quiz with its questions. Only the classroom owner may author quizzes."""
    classroom = await db.get(Classroom, classroom_id)
    if not classroom:
        raise ValueError("Class not found")
    if classroom.created_by != teacher_id:
        raise ValueError("Not authorized")
    if not questions:
        raise ValueError("Add at least one question")

    built = [build_question(index, payload) for index, payload in enumerate(questions)]
    quiz = Quiz(
        classroom_id=classroom_id,
        created_by=teacher_id,
        title=title.strip(),
        time_limit_minutes=_normalize_time_limit(time_limit_minutes),
        is_published=is_published,
    )
    db.add(quiz)
    await db.flush()
    for question in built:
        question.quiz_id = quiz.id
        db.add(question)
    await db.flush()
    await db.refresh(quiz)
    return quiz


async def get_quiz_by_id(db: AsyncSession, quiz_id: int) -> Optional[Quiz]:
    return await db.get(Quiz, quiz_id)


async def get_questions(db: AsyncSession, quiz_id: int) -> List[Question]:
    result = await db.execute(
        select(Question)
        .where(Question.quiz_id == quiz_id)
        .order_by(Question.position.asc(), Question.id.asc())
    )
    return list(result.scalars().all())


async def list_quizzes(
    db: AsyncSession,
    classroom_id: int,
    published_only: bool = False,
) -> List[Quiz]:
    query = select(Quiz).where(Quiz.classroom_id == classroom_id)
    if published_only:
        query = query.where(Quiz.is_published.is_(True))
    result = await db.execute(query.order_by(Quiz.created_at.desc(), Quiz.id.desc()))
    return list(result.scalars().all())


async def count_questions(db: AsyncSession, quiz_ids: Iterable[int]) -> Dict[int, int]:
    ids = list(quiz_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Question.quiz_id, func.count(Question.id).label("total"))
        .where(Question.quiz_id.in_(ids))
        .group_by(Question.quiz_id)
    )
    counts = {quiz_id: 0 for quiz_id in ids}
    for row in result.all():
        counts[row.quiz_id] = int(row.total or 0)
    return counts


async def get_attempt(db: AsyncSession, quiz_id: int, student_id: int) -> Optional[QuizAttempt]:
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student_id)
        .order_by(QuizAttempt.completed_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_attempts_for_quizzes(db: AsyncSession, quiz_ids: Iterable[int]) -> List[QuizAttempt]:
    ids = list(quiz_ids)
    if not ids:
        return []
    result = await db.execute(select(QuizAttempt).where(QuizAttempt.quiz_id.in_(ids)))
    return list(result.scalars().all())


async def list_attempts_for_student(db: AsyncSession, student_id: int) -> List[QuizAttempt]:
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.student_id == student_id)
        .order_by(QuizAttempt.completed_at.asc())
    )
    return list(result.scalars().all())


async def create_attempt(
    db: AsyncSession,
    *,
    quiz_id: int,
    student_id: int,
    score: int,
    completed_at: Optional[datetime] = None,
) -> QuizAttempt:
    attempt = QuizAttempt(
        quiz_id=quiz_id,
        student_id=student_id,
        score=score,
        completed_at=completed_at or datetime.now(timezone.utc),
    )
    db.add(attempt)
    await db.flush()
    return attempt


async def add_answers(db: AsyncSession, attempt_id: int, answers: Sequence[GradedAnswer]) -> None:
    db.add_all(
        [
            QuizAnswer(
                attempt_id=attempt_id,
                question_id=item.question_id,
                answer=item.answer,
                is_correct=item.is_correct,
            )
            for item in answers
        ]
    )
    await db.flush()


async def delete_attempt(db: AsyncSession, attempt_id: int) -> None:
    await db.execute(delete(QuizAnswer).where(QuizAnswer.attempt_id == attempt_id))
    await db.execute(delete(QuizAttempt).where(QuizAttempt.id == attempt_id))
    await db.flush()


async def list_quizzes_for_student(
    db: AsyncSession,
    *,
    classroom_id: int,
    student_id: int,
) -> List[Dict[str, Any]]:
    """Published quizzes of a classroom, each marked ``completed`` or ``ongoing`` for the student."""
    quizzes = await list_quizzes(db, classroom_id, published_only=True)
    quiz_ids = [quiz.id for quiz in quizzes]
    counts = await count_questions(db, quiz_ids)

    attempts: Dict[int, QuizAttempt] = {}
    if quiz_ids:
        result = await db.execute(
            select(QuizAttempt).where(
                QuizAttempt.quiz_id.in_(quiz_ids),
                QuizAttempt.student_id == student_id,
            )
        )
        for attempt in result.scalars().all():
            attempts.setdefault(attempt.quiz_id, attempt)

    payload = []
    for quiz in quizzes:
        attempt = attempts.get(quiz.id)
        total = counts.get(quiz.id, 0)
        payload.append(
            {
                "id": quiz.id,
                "classroom_id": quiz.classroom_id,
                "title": quiz.title,
                "time_limit_minutes": quiz.time_limit_minutes,
                "is_published": bool(quiz.is_published),
                "question_count": total,
                "created_at": quiz.created_at,
                "status": "completed" if attempt else "ongoing",
                "score": attempt.score if attempt else None,
                "percentage": round(score_percentage(attempt.score, total), 2) if attempt else None,
                "completed_at": attempt.completed_at if attempt else None,
            }
        )
    return payload
