"""Timed quiz attempt engine.

One ``QuizSession`` drives one student through one quiz:
LOADING -> IN_PROGRESS -> SUBMITTING -> FINISHED. The countdown only runs
in IN_PROGRESS and answers can only change there. Reaching zero submits
whatever has been recorded, through the same path as a manual submit.
"""

import asyncio
import contextlib
import enum
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from lms.config import settings
from lms.exceptions import AttemptExistsError, LMSError, NotFoundError, QuizStateError
from lms.models.quiz import Question, QuestionType, Quiz
from lms.services.grading import GradeResult, grade_answers
from lms.services.store import LearningStore

logger = logging.getLogger("classroom-lms.quiz")


class SessionState(str, enum.Enum):
    LOADING = "LOADING"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTING = "SUBMITTING"
    FINISHED = "FINISHED"


class QuizSession:
    def __init__(
        self,
        store: LearningStore,
        quiz_id: int,
        student_id: int,
        *,
        tick_seconds: Optional[float] = None,
        auto_tick: bool = True,
        on_finished: Optional[Callable[["QuizSession"], None]] = None,
    ):
        self.store = store
        self.on_finished = on_finished
        self.quiz_id = quiz_id
        self.student_id = student_id
        self.tick_seconds = settings.QUIZ_TIMER_TICK_SECONDS if tick_seconds is None else tick_seconds
        self.auto_tick = auto_tick

        self.state = SessionState.LOADING
        self.quiz: Optional[Quiz] = None
        self.questions: List[Question] = []
        self.answers: Dict[int, Any] = {}
        self.current_index = 0
        self.remaining_seconds: Optional[int] = None

        self.result: Optional[GradeResult] = None
        self.attempt_id: Optional[int] = None
        self.completed_at: Optional[datetime] = None
        self.submitted_by_timer = False
        self.last_error: Optional[str] = None

        self._submit_in_flight = False
        self._timer_task: Optional[asyncio.Task] = None
        self._closed = False

    async def __aenter__(self) -> "QuizSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def final_score(self) -> Optional[int]:
        return self.result.score if self.result else None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_live(self) -> bool:
        return not self._closed and self.state != SessionState.FINISHED

    @property
    def timer_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def load(self) -> "QuizSession":
        """Fetch the quiz and its questions and start the countdown."""
        if self._closed or self.state != SessionState.LOADING:
            raise QuizStateError("Quiz session already started")

        quiz = await self.store.fetch_quiz(self.quiz_id)
        if quiz is None or not quiz.is_published:
            raise NotFoundError("Quiz not found")
        questions = await self.store.fetch_questions(self.quiz_id)
        if not questions:
            raise NotFoundError("Quiz has no questions")
        if await self.store.has_attempt(self.quiz_id, self.student_id):
            raise AttemptExistsError("Quiz already attempted")

        self.quiz = quiz
        self.questions = list(questions)
        self.remaining_seconds = int(quiz.time_limit_minutes) * 60
        self.state = SessionState.IN_PROGRESS
        if self.auto_tick:
            self._timer_task = asyncio.create_task(
                self._run_timer(), name=f"quiz-timer-{self.quiz_id}-{self.student_id}"
            )
        logger.info(
            f"Quiz {self.quiz_id} started by student {self.student_id} "
            f"({len(self.questions)} questions, {self.remaining_seconds}s)"
        )
        return self

    def _require_in_progress(self) -> None:
        if self._closed:
            raise QuizStateError("Quiz session was abandoned")
        if self.state != SessionState.IN_PROGRESS:
            raise QuizStateError(f"Quiz is {self.state.value.lower().replace('_', ' ')}")

    def record_answer(self, question_id: int, value: Any) -> None:
        """Store or overwrite the answer for a question. The value is graded at submit time."""
        self._require_in_progress()
        if not any(question.id == question_id for question in self.questions):
            raise NotFoundError("Question not found in this quiz")
        self.answers[question_id] = value

    def advance(self, direction: int) -> int:
        """Move the question cursor one step forward or back, clamped to the quiz."""
        if not self.questions:
            raise QuizStateError("Quiz is not loaded")
        step = (direction > 0) - (direction < 0)
        last = len(self.questions) - 1
        self.current_index = max(0, min(last, self.current_index + step))
        return self.current_index

    async def tick(self) -> None:
        """One countdown step. Hitting zero submits the attempt."""
        if self._closed or self.state != SessionState.IN_PROGRESS:
            return
        self.remaining_seconds = max(0, (self.remaining_seconds or 0) - 1)
        if self.remaining_seconds == 0:
            await self.time_expired()

    async def time_expired(self) -> Optional[GradeResult]:
        if self._closed or self.state != SessionState.IN_PROGRESS:
            return None
        logger.info(f"Time expired on quiz {self.quiz_id} for student {self.student_id}")
        self.submitted_by_timer = True
        return await self.submit()

    async def submit(self) -> Optional[GradeResult]:
        """Grade and persist the attempt.

        A call while another submission is in flight returns ``None``; a
        call after success returns the existing result. On a failed write
        the session stays in SUBMITTING and ``submit`` may be called again.
        """
        if self.state == SessionState.FINISHED:
            return self.result
        if self._submit_in_flight:
            return None
        if self._closed:
            raise QuizStateError("Quiz session was abandoned")
        if self.state not in (SessionState.IN_PROGRESS, SessionState.SUBMITTING):
            raise QuizStateError("Quiz is not loaded")

        self._submit_in_flight = True
        self.state = SessionState.SUBMITTING
        self._stop_timer()
        try:
            result = grade_answers(self.questions, self.answers)
            completed_at = datetime.now(timezone.utc)
            attempt = await self.store.save_attempt(
                quiz_id=self.quiz_id,
                student_id=self.student_id,
                result=result,
                completed_at=completed_at,
            )
        except LMSError as exc:
            self.last_error = str(exc)
            logger.warning(f"Submitting quiz {self.quiz_id} for student {self.student_id} failed: {exc}")
            raise
        finally:
            self._submit_in_flight = False

        self.attempt_id = attempt.id
        self.completed_at = attempt.completed_at or completed_at
        self.result = result
        self.last_error = None
        self.state = SessionState.FINISHED
        logger.info(
            f"Quiz {self.quiz_id} submitted by student {self.student_id}: "
            f"{result.score}/{result.total_questions}"
        )
        if self.on_finished is not None:
            self.on_finished(self)
        return result

    async def close(self) -> None:
        """Release the timer. An unsubmitted attempt is discarded, nothing is persisted."""
        if self._closed:
            return
        self._closed = True
        task = self._stop_timer()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self.state == SessionState.IN_PROGRESS:
            logger.info(f"Quiz {self.quiz_id} abandoned by student {self.student_id}")
            self.answers.clear()

    def _stop_timer(self) -> Optional[asyncio.Task]:
        task, self._timer_task = self._timer_task, None
        if task is None or task is asyncio.current_task() or task.done():
            return None
        task.cancel()
        return task

    async def _run_timer(self) -> None:
        try:
            while not self._closed and self.state == SessionState.IN_PROGRESS:
                await asyncio.sleep(self.tick_seconds)
                await self.tick()
        except LMSError as exc:
            # Already recorded in last_error; the student can retry submit().
            logger.warning(f"Automatic submission of quiz {self.quiz_id} failed: {exc}")

    def snapshot(self) -> Dict[str, Any]:
        reveal = self.state == SessionState.FINISHED
        questions = []
        for question in self.questions:
            item = {
                "id": question.id,
                "question_text": question.question_text,
                "question_type": question.question_type,
                "options": list(question.options or []) if question.question_type == QuestionType.MCQ.value else None,
            }
            if reveal:
                item["correct_option"] = question.correct_option
                item["correct_answer"] = question.correct_answer
            questions.append(item)

        return {
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "title": self.quiz.title if self.quiz else None,
            "classroom_id": self.quiz.classroom_id if self.quiz else None,
            "state": self.state.value,
            "closed": self._closed,
            "remaining_seconds": self.remaining_seconds,
            "current_index": self.current_index,
            "question_count": len(self.questions),
            "questions": questions,
            "answers": {str(key): value for key, value in self.answers.items()},
            "score": self.result.score if self.result else None,
            "percentage": round(self.result.percentage, 2) if self.result else None,
            "graded": [
                {"question_id": item.question_id, "answer": item.answer, "is_correct": item.is_correct}
                for item in self.result.answers
            ] if self.result else None,
            "attempt_id": self.attempt_id,
            "completed_at": self.completed_at,
            "submitted_by_timer": self.submitted_by_timer,
            "last_error": self.last_error,
        }
