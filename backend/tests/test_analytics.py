import pytest

from lms.exceptions import AggregationReadError, NotFoundError
from lms.services.analytics_service import (
    coverage_pct,
    get_classroom_performance,
    get_student_progress,
    overall_score,
    round_half_up,
)


@pytest.fixture
def classroom(store):
    store.add_classroom(1, name="Physics")
    return store


def row_for(performance, student_id):
    return next(row for row in performance.students if row.student_id == student_id)


def test_overall_score_weights_and_rounding():
    assert overall_score(100, 100, 100) == 100
    assert overall_score(0, 60, 0) == 12
    assert overall_score(75, 50, 0) == 55
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1


def test_coverage_is_clamped():
    assert coverage_pct(3, 5) == 60.0
    assert coverage_pct(7, 5) == 100.0
    assert coverage_pct(2, 0) == 0.0


async def test_material_pct_from_distinct_views(classroom):
    classroom.enroll(1, 10, "Ada")
    for material_id in range(1, 6):
        classroom.add_material(material_id)
    for material_id in (1, 2, 3):
        classroom.add_view(10, material_id)

    performance = await get_classroom_performance(classroom, 1)

    row = row_for(performance, 10)
    assert performance.total_materials == 5
    assert row.materials_viewed == 3
    assert row.material_pct == 60.0


async def test_no_attempts_scores_engagement_only(classroom):
    classroom.enroll(1, 10, "Ada")
    for material_id in range(1, 6):
        classroom.add_material(material_id)
    classroom.add_material(6, material_type="video")
    classroom.add_material(7, material_type="video")
    for material_id in (1, 2, 3, 6):
        classroom.add_view(10, material_id)
    classroom.add_quiz(1, questions=[0, 1])

    row = row_for(await get_classroom_performance(classroom, 1), 10)

    assert row.quizzes_taken == 0
    assert row.quiz_avg == 0.0
    assert row.video_pct == 50.0
    assert row.overall_score == 22


async def test_duplicate_views_do_not_inflate_coverage(classroom):
    classroom.enroll(1, 10, "Ada")
    classroom.add_material(1)
    classroom.add_material(2)
    for _ in range(3):
        classroom.add_view(10, 1)

    row = row_for(await get_classroom_performance(classroom, 1), 10)

    assert row.materials_viewed == 1
    assert row.material_pct == 50.0


async def test_quiz_avg_is_mean_of_attempt_percentages(classroom):
    classroom.enroll(1, 10, "Ada")
    classroom.add_quiz(1, questions=[0, 0, 0, 0])
    classroom.add_quiz(2, questions=[0, 0])
    classroom.add_attempt(1, 10, score=3)
    classroom.add_attempt(2, 10, score=1)

    row = row_for(await get_classroom_performance(classroom, 1), 10)

    assert row.quizzes_taken == 2
    assert row.quiz_avg == pytest.approx(62.5)
    assert row.overall_score == 38


async def test_views_of_other_classrooms_are_ignored(classroom):
    classroom.add_classroom(2, name="Chemistry")
    classroom.enroll(1, 10, "Ada")
    classroom.add_material(1)
    classroom.add_material(50, classroom_id=2)
    classroom.add_view(10, 50, classroom_id=2)

    row = row_for(await get_classroom_performance(classroom, 1), 10)

    assert row.materials_viewed == 0


async def test_class_averages_are_means(classroom):
    classroom.enroll(1, 10, "Ada")
    classroom.enroll(1, 11, "Bo")
    classroom.add_material(1)
    classroom.add_view(10, 1)
    classroom.add_quiz(1, questions=[0])
    classroom.add_attempt(1, 11, score=1)

    performance = await get_classroom_performance(classroom, 1)

    assert performance.averages.materials == 50.0
    assert performance.averages.quizzes == 50.0
    assert performance.averages.overall == pytest.approx((20 + 60) / 2)


async def test_empty_classroom_has_zero_averages(classroom):
    performance = await get_classroom_performance(classroom, 1)

    assert performance.students == []
    assert performance.averages.overall == 0.0


async def test_ranking_by_overall_then_name(classroom):
    classroom.enroll(1, 10, "carol")
    classroom.enroll(1, 11, "Bob")
    classroom.enroll(1, 12, "alice")
    classroom.add_quiz(1, questions=[0])
    classroom.add_attempt(1, 10, score=1)

    unranked = await get_classroom_performance(classroom, 1)
    ranked = await get_classroom_performance(classroom, 1, ranked=True)

    assert [row.full_name for row in unranked.students] == ["carol", "Bob", "alice"]
    assert [row.full_name for row in ranked.students] == ["carol", "alice", "Bob"]


async def test_missing_classroom(store):
    with pytest.raises(NotFoundError):
        await get_classroom_performance(store, 404)


async def test_read_failure_aborts_aggregation(classroom):
    classroom.enroll(1, 10, "Ada")
    classroom.fail_reads = True

    with pytest.raises(AggregationReadError):
        await get_classroom_performance(classroom, 1)
    with pytest.raises(AggregationReadError):
        await get_student_progress(classroom, 10)


async def test_student_progress(classroom, minutes_ago):
    classroom.add_classroom(2, name="Chemistry")
    classroom.enroll(1, 10, "Ada")
    classroom.enroll(2, 10, "Ada")
    classroom.add_quiz(1, classroom_id=1, questions=[0, 0])
    classroom.add_quiz(2, classroom_id=1, questions=[0])
    classroom.add_quiz(3, classroom_id=2, questions=[0, 0, 0, 0])
    classroom.add_quiz(4, classroom_id=2, questions=[0], published=False)
    classroom.add_attempt(1, 10, score=1, completed_at=minutes_ago(30))
    classroom.add_attempt(3, 10, score=4, completed_at=minutes_ago(5))

    progress = await get_student_progress(classroom, 10)

    assert progress["quizzes_completed"] == 2
    assert progress["quizzes_pending"] == 1
    assert progress["average"] == 75.0
    subjects = {subject["name"]: subject for subject in progress["subjects"]}
    assert subjects["Physics"]["average"] == 50.0
    assert subjects["Physics"]["quizzes_pending"] == 1
    assert subjects["Chemistry"]["quizzes_pending"] == 0
    assert [item["quiz_id"] for item in progress["recent_attempts"]] == [3, 1]
    assert progress["recent_attempts"][0]["classroom_name"] == "Chemistry"
