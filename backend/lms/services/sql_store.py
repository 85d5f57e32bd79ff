"""SQLAlchemy implementation of ``LearningStore``.

Each call opens its own short-lived session so the store can be used from
background tasks (the quiz countdown) as well as from request handlers.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms.exceptions import AttemptExistsError, PersistenceError, StoreReadError
from lms.models.classroom import Classroom
from lms.models.material import Material
from lms.models.quiz import Question, Quiz, QuizAttempt
from lms.models.user import Profile
from lms.services import class_service, material_service, quiz_service
from lms.services.grading import GradedAnswer, GradeResult
from lms.services.store import LearningStore, ViewRecord, ViewTable


class SqlLearningStore(LearningStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _read(self, operation, *args):
        try:
            async with self._session_factory() as db:
                return await operation(db, *args)
        except SQLAlchemyError as exc:
            raise StoreReadError(f"Read failed: {exc}") from exc

    async def fetch_quiz(self, quiz_id: int) -> Optional[Quiz]:
        return await self._read(quiz_service.get_quiz_by_id, quiz_id)

    async def fetch_questions(self, quiz_id: int) -> List[Question]:
        return await self._read(quiz_service.get_questions, quiz_id)

    async def fetch_quizzes(self, classroom_id: int) -> List[Quiz]:
        return await self._read(quiz_service.list_quizzes, classroom_id)

    async def fetch_question_counts(self, quiz_ids: Iterable[int]) -> Dict[int, int]:
        return await self._read(quiz_service.count_questions, list(quiz_ids))

    async def has_attempt(self, quiz_id: int, student_id: int) -> bool:
        attempt = await self._read(quiz_service.get_attempt, quiz_id, student_id)
        return attempt is not None

    async def insert_attempt(
        self,
        *,
        quiz_id: int,
        student_id: int,
        score: int,
        completed_at: datetime,
    ) -> QuizAttempt:
        try:
            async with self._session_factory() as db, db.begin():
                return await quiz_service.create_attempt(
                    db,
                    quiz_id=quiz_id,
                    student_id=student_id,
                    score=score,
                    completed_at=completed_at,
                )
        except IntegrityError as exc:
            raise AttemptExistsError("Quiz already attempted") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save attempt: {exc}") from exc

    async def insert_answers(self, attempt_id: int, answers: Sequence[GradedAnswer]) -> None:
        try:
            async with self._session_factory() as db, db.begin():
                await quiz_service.add_answers(db, attempt_id, answers)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save answers: {exc}") from exc

    async def delete_attempt(self, attempt_id: int) -> None:
        try:
            async with self._session_factory() as db, db.begin():
                await quiz_service.delete_attempt(db, attempt_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not delete attempt: {exc}") from exc

    async def save_attempt(
        self,
        *,
        quiz_id: int,
        student_id: int,
        result: GradeResult,
        completed_at: datetime,
    ) -> QuizAttempt:
        """Attempt and answers commit or roll back together."""
        try:
            async with self._session_factory() as db, db.begin():
                try:
                    attempt = await quiz_service.create_attempt(
                        db,
                        quiz_id=quiz_id,
                        student_id=student_id,
                        score=result.score,
                        completed_at=completed_at,
                    )
                except IntegrityError as exc:
                    raise AttemptExistsError("Quiz already attempted") from exc
                await quiz_service.add_answers(db, attempt.id, result.answers)
                return attempt
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save attempt: {exc}") from exc

    async def fetch_attempts_for_quizzes(self, quiz_ids: Iterable[int]) -> List[QuizAttempt]:
        return await self._read(quiz_service.list_attempts_for_quizzes, list(quiz_ids))

    async def fetch_attempts_for_student(self, student_id: int) -> List[QuizAttempt]:
        return await self._read(quiz_service.list_attempts_for_student, student_id)

    async def fetch_materials(self, classroom_id: int) -> List[Material]:
        return await self._read(material_service.list_materials, classroom_id)

    async def fetch_views(self, table: ViewTable, classroom_id: int) -> List[ViewRecord]:
        return await self._read(material_service.list_views, table, classroom_id)

    async def fetch_classroom(self, classroom_id: int) -> Optional[Classroom]:
        return await self._read(class_service.get_classroom_by_id, classroom_id)

    async def fetch_enrolled_students(self, classroom_id: int) -> List[Profile]:
        return await self._read(class_service.list_students, classroom_id)

    async def fetch_enrollments_for_student(self, student_id: int) -> List[Classroom]:
        return await self._read(class_service.list_classrooms_for_student, student_id)
