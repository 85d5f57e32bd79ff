"""Persistence boundary consumed by the quiz session engine and the aggregators.

``LearningStore`` lists the read/write operations the core needs. The SQL
implementation lives in ``lms.services.sql_store``; tests supply an
in-memory one.
"""

import enum
import logging
from datetime import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from lms.exceptions import PartialWriteError, PersistenceError
from lms.models.classroom import Classroom
from lms.models.material import Material
from lms.models.quiz import Question, Quiz, QuizAttempt
from lms.models.user import Profile
from lms.services.grading import GradedAnswer, GradeResult

logger = logging.getLogger("classroom-lms.store")


class ViewTable(str, enum.Enum):
    MATERIAL_VIEWS = "material_views"
    VIDEO_VIEWS = "video_views"


class ViewRecord(NamedTuple):
    student_id: int
    classroom_id: int
    resource_id: int


class LearningStore:
    """Read/write operations against the learning data store."""

    async def fetch_quiz(self, quiz_id: int) -> Optional[Quiz]:
        raise NotImplementedError

    async def fetch_questions(self, quiz_id: int) -> List[Question]:
        raise NotImplementedError

    async def fetch_quizzes(self, classroom_id: int) -> List[Quiz]:
        raise NotImplementedError

    async def fetch_question_counts(self, quiz_ids: Iterable[int]) -> Dict[int, int]:
        raise NotImplementedError

    async def has_attempt(self, quiz_id: int, student_id: int) -> bool:
        raise NotImplementedError

    async def insert_attempt(
        self,
        *,
        quiz_id: int,
        student_id: int,
        score: int,
        completed_at: datetime,
    ) -> QuizAttempt:
        raise NotImplementedError

    async def insert_answers(self, attempt_id: int, answers: Sequence[GradedAnswer]) -> None:
        raise NotImplementedError

    async def delete_attempt(self, attempt_id: int) -> None:
        raise NotImplementedError

    async def fetch_attempts_for_quizzes(self, quiz_ids: Iterable[int]) -> List[QuizAttempt]:
        raise NotImplementedError

    async def fetch_attempts_for_student(self, student_id: int) -> List[QuizAttempt]:
        raise NotImplementedError

    async def fetch_materials(self, classroom_id: int) -> List[Material]:
        raise NotImplementedError

    async def fetch_views(self, table: ViewTable, classroom_id: int) -> List[ViewRecord]:
        raise NotImplementedError

    async def fetch_classroom(self, classroom_id: int) -> Optional[Classroom]:
        raise NotImplementedError

    async def fetch_enrolled_students(self, classroom_id: int) -> List[Profile]:
        raise NotImplementedError

    async def fetch_enrollments_for_student(self, student_id: int) -> List[Classroom]:
        raise NotImplementedError

    async def save_attempt(
        self,
        *,
        quiz_id: int,
        student_id: int,
        result: GradeResult,
        completed_at: datetime,
    ) -> QuizAttempt:
        """Write an attempt and its answers as one logical unit.

        Stores without transactions get a compensating delete of the
        attempt row when the answer batch fails. If that delete fails too,
        ``PartialWriteError`` reports the orphan attempt id.
        """
        attempt = await self.insert_attempt(
            quiz_id=quiz_id,
            student_id=student_id,
            score=result.score,
            completed_at=completed_at,
        )
        try:
            await self.insert_answers(attempt.id, result.answers)
        except PersistenceError as exc:
            logger.warning(f"Answer write failed for attempt {attempt.id}; removing attempt")
            try:
                await self.delete_attempt(attempt.id)
            except PersistenceError as cleanup_exc:
                logger.error(f"Orphan attempt {attempt.id} left behind: {cleanup_exc}")
                raise PartialWriteError(
                    "Attempt saved without answers and could not be removed",
                    attempt_id=attempt.id,
                ) from cleanup_exc
            raise
        return attempt
