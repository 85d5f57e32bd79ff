"""Engagement and performance analytics.

Per student in a classroom:

    material_pct = min(100, 100 * distinct materials viewed / non-video materials)
    video_pct    = min(100, 100 * distinct videos watched / videos)
    quiz_avg     = mean over attempts of score / questions in that quiz * 100
    overall      = round(0.6 * quiz_avg + 0.2 * material_pct + 0.2 * video_pct)

Inputs are read fresh on every call. Any read failure aborts the whole
computation with ``AggregationReadError``.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from lms.config import settings
from lms.exceptions import AggregationReadError, NotFoundError, StoreReadError
from lms.models.classroom import Classroom
from lms.models.material import Material
from lms.models.quiz import Quiz, QuizAttempt
from lms.models.user import Profile
from lms.services.grading import score_percentage
from lms.services.store import LearningStore, ViewRecord, ViewTable

logger = logging.getLogger("classroom-lms.analytics")

QUIZ_WEIGHT = 0.6
MATERIAL_WEIGHT = 0.2
VIDEO_WEIGHT = 0.2


@dataclass
class StudentPerformance:
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


@dataclass
class ClassAverages:
    materials: float = 0.0
    videos: float = 0.0
    quizzes: float = 0.0
    overall: float = 0.0


@dataclass
class ClassroomPerformance:
    classroom_id: int
    total_materials: int
    total_videos: int
    total_quizzes: int
    students: List[StudentPerformance] = field(default_factory=list)
    averages: ClassAverages = field(default_factory=ClassAverages)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coverage_pct(distinct_viewed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return max(0.0, min(100.0, 100.0 * distinct_viewed / total))


def overall_score(quiz_avg: float, material_pct: float, video_pct: float) -> int:
    return round_half_up(
        quiz_avg * QUIZ_WEIGHT + material_pct * MATERIAL_WEIGHT + video_pct * VIDEO_WEIGHT
    )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _distinct_by_student(views: Iterable[ViewRecord], resource_ids: Set[int]) -> Dict[int, Set[int]]:
    seen: Dict[int, Set[int]] = defaultdict(set)
    for view in views:
        if view.resource_id in resource_ids:
            seen[view.student_id].add(view.resource_id)
    return seen


def build_classroom_performance(
    classroom_id: int,
    students: Sequence[Profile],
    materials: Sequence[Material],
    quizzes: Sequence[Quiz],
    attempts: Sequence[QuizAttempt],
    question_counts: Dict[int, int],
    material_views: Iterable[ViewRecord],
    video_views: Iterable[ViewRecord],
) -> ClassroomPerformance:
    """Compute the performance table from raw rows. Students keep enrollment order."""
    document_ids = {material.id for material in materials if not material.is_video}
    video_ids = {material.id for material in materials if material.is_video}
    quiz_ids = {quiz.id for quiz in quizzes}

    viewed = _distinct_by_student(material_views, document_ids)
    watched = _distinct_by_student(video_views, video_ids)

    attempt_pcts: Dict[int, List[float]] = defaultdict(list)
    for attempt in attempts:
        if attempt.quiz_id not in quiz_ids:
            continue
        total = question_counts.get(attempt.quiz_id, 0)
        attempt_pcts[attempt.student_id].append(score_percentage(attempt.score, total))

    rows = []
    for student in students:
        materials_viewed = len(viewed.get(student.id, ()))
        videos_watched = len(watched.get(student.id, ()))
        material_pct = coverage_pct(materials_viewed, len(document_ids))
        video_pct = coverage_pct(videos_watched, len(video_ids))
        pcts = attempt_pcts.get(student.id, [])
        quiz_avg = _mean(pcts)
        rows.append(
            StudentPerformance(
                student_id=student.id,
                full_name=student.full_name,
                email=student.email,
                materials_viewed=materials_viewed,
                videos_watched=videos_watched,
                material_pct=material_pct,
                video_pct=video_pct,
                quizzes_taken=len(pcts),
                quiz_avg=quiz_avg,
                overall_score=overall_score(quiz_avg, material_pct, video_pct),
            )
        )

    averages = ClassAverages(
        materials=_mean([row.material_pct for row in rows]),
        videos=_mean([row.video_pct for row in rows]),
        quizzes=_mean([row.quiz_avg for row in rows]),
        overall=_mean([row.overall_score for row in rows]),
    )
    return ClassroomPerformance(
        classroom_id=classroom_id,
        total_materials=len(document_ids),
        total_videos=len(video_ids),
        total_quizzes=len(quiz_ids),
        students=rows,
        averages=averages,
    )


def rank_students(rows: Iterable[StudentPerformance]) -> List[StudentPerformance]:
    """Highest overall score first; ties by full name, case-insensitive."""
    return sorted(rows, key=lambda row: (-row.overall_score, row.full_name.casefold()))


async def get_classroom_performance(
    store: LearningStore,
    classroom_id: int,
    ranked: bool = False,
) -> ClassroomPerformance:
    try:
        classroom = await store.fetch_classroom(classroom_id)
        if classroom is None:
            raise NotFoundError("Class not found")
        students = await store.fetch_enrolled_students(classroom_id)
        materials = await store.fetch_materials(classroom_id)
        quizzes = await store.fetch_quizzes(classroom_id)
        quiz_ids = [quiz.id for quiz in quizzes]
        attempts = await store.fetch_attempts_for_quizzes(quiz_ids)
        question_counts = await store.fetch_question_counts(quiz_ids)
        material_views = await store.fetch_views(ViewTable.MATERIAL_VIEWS, classroom_id)
        video_views = await store.fetch_views(ViewTable.VIDEO_VIEWS, classroom_id)
    except StoreReadError as exc:
        logger.error(f"Performance read failed for class {classroom_id}: {exc}")
        raise AggregationReadError("Could not load classroom analytics") from exc

    performance = build_classroom_performance(
        classroom_id,
        students,
        materials,
        quizzes,
        attempts,
        question_counts,
        material_views,
        video_views,
    )
    if ranked:
        performance.students = rank_students(performance.students)
    return performance


def build_student_progress(
    classrooms: Sequence[Classroom],
    quizzes_by_classroom: Dict[int, List[Quiz]],
    attempts: Sequence[QuizAttempt],
    question_counts: Dict[int, int],
    recent_limit: Optional[int] = None,
) -> Dict[str, Any]:
    """A student's quiz progress across their enrolled classrooms."""
    limit = settings.RECENT_ATTEMPTS_LIMIT if recent_limit is None else recent_limit
    quiz_lookup: Dict[int, Quiz] = {}
    for classroom_quizzes in quizzes_by_classroom.values():
        for quiz in classroom_quizzes:
            if quiz.is_published:
                quiz_lookup[quiz.id] = quiz
    class_names = {classroom.id: classroom.name for classroom in classrooms}

    relevant = [attempt for attempt in attempts if attempt.quiz_id in quiz_lookup]
    attempted_ids = {attempt.quiz_id for attempt in relevant}

    def _pct(attempt: QuizAttempt) -> float:
        return score_percentage(attempt.score, question_counts.get(attempt.quiz_id, 0))

    subjects = []
    pending_total = 0
    for classroom in classrooms:
        published_ids = {
            quiz.id for quiz in quizzes_by_classroom.get(classroom.id, []) if quiz.is_published
        }
        pcts = [_pct(attempt) for attempt in relevant if attempt.quiz_id in published_ids]
        pending = len(published_ids - attempted_ids)
        pending_total += pending
        subjects.append(
            {
                "classroom_id": classroom.id,
                "name": classroom.name,
                "average": round(_mean(pcts), 2),
                "quizzes_completed": len(published_ids & attempted_ids),
                "quizzes_pending": pending,
            }
        )

    ordered = sorted(relevant, key=lambda attempt: attempt.completed_at, reverse=True)
    recent = []
    for attempt in ordered[:limit]:
        quiz = quiz_lookup[attempt.quiz_id]
        recent.append(
            {
                "quiz_id": quiz.id,
                "title": quiz.title,
                "classroom_id": quiz.classroom_id,
                "classroom_name": class_names.get(quiz.classroom_id),
                "score": attempt.score,
                "total_questions": question_counts.get(quiz.id, 0),
                "percentage": round(_pct(attempt), 2),
                "completed_at": attempt.completed_at,
            }
        )

    return {
        "average": round(_mean([_pct(attempt) for attempt in relevant]), 2),
        "quizzes_completed": len(attempted_ids),
        "quizzes_pending": pending_total,
        "subjects": subjects,
        "recent_attempts": recent,
    }


async def get_student_progress(store: LearningStore, student_id: int) -> Dict[str, Any]:
    try:
        classrooms = await store.fetch_enrollments_for_student(student_id)
        quizzes_by_classroom = {}
        for classroom in classrooms:
            quizzes_by_classroom[classroom.id] = await store.fetch_quizzes(classroom.id)
        attempts = await store.fetch_attempts_for_student(student_id)
        quiz_ids = [quiz.id for quizzes in quizzes_by_classroom.values() for quiz in quizzes]
        question_counts = await store.fetch_question_counts(quiz_ids)
    except StoreReadError as exc:
        logger.error(f"Progress read failed for student {student_id}: {exc}")
        raise AggregationReadError("Could not load progress") from exc

    return build_student_progress(classrooms, quizzes_by_classroom, attempts, question_counts)
