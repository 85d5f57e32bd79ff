import asyncio

import pytest

from lms.exceptions import (
    AttemptExistsError,
    NotFoundError,
    PartialWriteError,
    PersistenceError,
    QuizStateError,
)
from lms.services.quiz_session import QuizSession, SessionState
from lms.services.session_registry import QuizSessionRegistry

STUDENT = 7


async def start(store, quiz_id=1, **kwargs):
    kwargs.setdefault("auto_tick", False)
    session = QuizSession(store, quiz_id, STUDENT, **kwargs)
    await session.load()
    return session


async def test_load_starts_countdown_from_time_limit(store):
    store.add_quiz(1, questions=[0, 1], minutes=2)
    session = await start(store)

    assert session.state == SessionState.IN_PROGRESS
    assert session.remaining_seconds == 120
    assert session.current_index == 0
    assert session.answers == {}


@pytest.mark.parametrize(
    "setup",
    [
        lambda store: None,
        lambda store: store.add_quiz(1, questions=[0], published=False),
        lambda store: store.add_quiz(1, questions=[]),
    ],
    ids=["missing", "unpublished", "no-questions"],
)
async def test_load_rejects_unavailable_quiz(store, setup):
    setup(store)
    session = QuizSession(store, 1, STUDENT, auto_tick=False)

    with pytest.raises(NotFoundError):
        await session.load()
    assert session.state == SessionState.LOADING


async def test_load_rejects_second_attempt(store):
    store.add_quiz(1, questions=[0])
    store.add_attempt(1, STUDENT, score=1)

    with pytest.raises(AttemptExistsError):
        await start(store)


async def test_mcq_submission_scores_three_of_four(store):
    store.add_quiz(1, questions=[1, 0, 2, 3])
    session = await start(store)
    for question, value in zip(session.questions, [1, 0, 2, 2]):
        session.record_answer(question.id, value)

    result = await session.submit()

    assert result.score == 3
    assert result.percentage == 75.0
    assert session.state == SessionState.FINISHED
    assert session.final_score == 3
    [attempt] = store.attempts
    assert attempt.score == 3
    assert [a.is_correct for a in store.answers[attempt.id]] == [True, True, True, False]


async def test_short_answer_trimmed_and_case_folded(store):
    store.add_quiz(1, questions=["Paris"])
    session = await start(store)
    session.record_answer(session.questions[0].id, " paris ")

    result = await session.submit()

    assert result.score == 1


async def test_answers_overwrite_and_unknown_question_is_rejected(store):
    store.add_quiz(1, questions=[2])
    session = await start(store)
    question_id = session.questions[0].id

    session.record_answer(question_id, 1)
    session.record_answer(question_id, 2)
    assert session.answers == {question_id: 2}

    with pytest.raises(NotFoundError):
        session.record_answer(999, 0)


async def test_advance_is_clamped(store):
    store.add_quiz(1, questions=[0, 1, 2])
    session = await start(store)

    assert session.advance(-1) == 0
    assert session.advance(1) == 1
    assert session.advance(1) == 2
    assert session.advance(1) == 2
    assert session.advance(-1) == 1


async def test_timer_expiry_submits_empty_attempt_once(store):
    store.add_quiz(1, questions=[0, 1], minutes=1)
    session = await start(store)

    for _ in range(59):
        await session.tick()
    assert session.remaining_seconds == 1
    assert session.state == SessionState.IN_PROGRESS

    await session.tick()
    await session.tick()

    assert session.remaining_seconds == 0
    assert session.state == SessionState.FINISHED
    assert session.submitted_by_timer
    [attempt] = store.attempts
    assert attempt.score == 0
    assert all(not answer.is_correct for answer in store.answers[attempt.id])
    assert all(answer.answer is None for answer in store.answers[attempt.id])


async def test_background_timer_auto_submits(store):
    store.add_quiz(1, questions=[0], minutes=1)
    async with await start(store, auto_tick=True, tick_seconds=0.001) as session:
        assert session.timer_running
        for _ in range(500):
            if session.state == SessionState.FINISHED:
                break
            await asyncio.sleep(0.01)

        assert session.state == SessionState.FINISHED
        assert session.submitted_by_timer
        assert not session.timer_running
    assert len(store.attempts) == 1


async def test_submit_is_idempotent(store):
    store.add_quiz(1, questions=[0])
    session = await start(store)
    session.record_answer(session.questions[0].id, 0)

    first = await session.submit()
    second = await session.submit()
    await session.time_expired()

    assert first is second
    assert store.insert_attempt_calls == 1
    assert len(store.attempts) == 1


async def test_concurrent_submits_write_one_attempt(store):
    store.add_quiz(1, questions=[0])
    session = await start(store)

    await asyncio.gather(session.submit(), session.submit(), session.time_expired())

    assert session.state == SessionState.FINISHED
    assert store.insert_attempt_calls == 1


async def test_answers_are_frozen_after_submit(store):
    store.add_quiz(1, questions=[0])
    session = await start(store)
    await session.submit()

    with pytest.raises(QuizStateError):
        session.record_answer(session.questions[0].id, 0)


async def test_failed_submit_can_be_retried(store):
    store.add_quiz(1, questions=[0])
    session = await start(store)
    session.record_answer(session.questions[0].id, 0)
    store.attempt_failures = 1

    with pytest.raises(PersistenceError):
        await session.submit()
    assert session.state == SessionState.SUBMITTING
    assert session.last_error == "attempt write failed"
    with pytest.raises(QuizStateError):
        session.record_answer(session.questions[0].id, 1)

    result = await session.submit()

    assert result.score == 1
    assert session.state == SessionState.FINISHED
    assert session.last_error is None
    assert len(store.attempts) == 1


async def test_failed_answer_write_removes_attempt(store):
    store.add_quiz(1, questions=[0, 1])
    session = await start(store)
    store.answer_failures = 1

    with pytest.raises(PersistenceError) as excinfo:
        await session.submit()

    assert not isinstance(excinfo.value, PartialWriteError)
    assert store.attempts == []

    await session.submit()
    assert len(store.attempts) == 1
    assert len(store.answers[store.attempts[0].id]) == 2


async def test_failed_cleanup_reports_partial_write(store):
    store.add_quiz(1, questions=[0])
    session = await start(store)
    store.answer_failures = 1
    store.fail_delete = True

    with pytest.raises(PartialWriteError) as excinfo:
        await session.submit()

    [orphan] = store.attempts
    assert excinfo.value.attempt_id == orphan.id
    assert session.state == SessionState.SUBMITTING


async def test_close_cancels_timer_and_discards_answers(store):
    store.add_quiz(1, questions=[0], minutes=5)
    session = await start(store, auto_tick=True, tick_seconds=60)
    session.record_answer(session.questions[0].id, 0)
    assert session.timer_running

    await session.close()

    assert session.closed
    assert not session.timer_running
    assert session.answers == {}
    assert store.attempts == []
    with pytest.raises(QuizStateError):
        session.record_answer(session.questions[0].id, 0)
    with pytest.raises(QuizStateError):
        await session.submit()


async def test_snapshot_reveals_answers_only_when_finished(store):
    store.add_quiz(1, questions=[3])
    session = await start(store)

    before = session.snapshot()
    assert "correct_option" not in before["questions"][0]
    assert before["state"] == "IN_PROGRESS"

    session.record_answer(session.questions[0].id, 3)
    await session.submit()
    after = session.snapshot()

    assert after["questions"][0]["correct_option"] == 3
    assert after["score"] == 1
    assert after["percentage"] == 100.0
    assert after["graded"][0]["is_correct"] is True
    assert after["answers"] == {str(session.questions[0].id): 3}


async def test_registry_resumes_live_session(store):
    store.add_quiz(1, questions=[0])
    registry = QuizSessionRegistry(store, auto_tick=False)

    first = await registry.start(1, STUDENT)
    again = await registry.start(1, STUDENT)
    assert first is again
    assert registry.get(1, STUDENT) is first

    await first.submit()
    with pytest.raises(AttemptExistsError):
        await registry.start(1, STUDENT)

    await registry.close_all()
    assert len(registry) == 0


async def test_registry_abandon(store):
    store.add_quiz(1, questions=[0])
    registry = QuizSessionRegistry(store, auto_tick=False)
    session = await registry.start(1, STUDENT)

    await registry.abandon(1, STUDENT)

    assert session.closed
    with pytest.raises(NotFoundError):
        registry.get(1, STUDENT)
    with pytest.raises(NotFoundError):
        await registry.abandon(1, STUDENT)


async def test_registry_drops_sessions_once_submitted(store):
    store.add_quiz(1, questions=[0])
    registry = QuizSessionRegistry(store, auto_tick=False)

    for student_id in range(100, 200):
        session = await registry.start(1, student_id)
        session.record_answer(session.questions[0].id, 0)
        await session.submit()

    assert len(registry) == 0
    assert registry.finished_count == 100
    assert registry.get(1, 150).final_score == 1


async def test_registry_drops_session_submitted_by_timer(store):
    store.add_quiz(1, questions=[0])
    registry = QuizSessionRegistry(store, auto_tick=False)
    session = await registry.start(1, STUDENT)

    session.remaining_seconds = 1
    await session.tick()

    assert session.submitted_by_timer
    assert len(registry) == 0
    assert registry.get(1, STUDENT) is session


async def test_registry_keeps_only_recent_results(store):
    store.add_quiz(1, questions=[0])
    registry = QuizSessionRegistry(store, auto_tick=False, finished_capacity=2)

    for student_id in (1, 2, 3):
        session = await registry.start(1, student_id)
        await session.submit()

    assert registry.finished_count == 2
    with pytest.raises(NotFoundError):
        registry.get(1, 1)
    assert registry.get(1, 3).state == SessionState.FINISHED

    await registry.abandon(1, 3)
    assert registry.finished_count == 1


async def test_registry_loads_different_students_concurrently(store):
    store.add_quiz(1, questions=[0])
    release = asyncio.Event()
    fetch_quiz = store.fetch_quiz
    calls = []

    async def gated_fetch_quiz(quiz_id):
        calls.append(quiz_id)
        if len(calls) == 1:
            await release.wait()
        return await fetch_quiz(quiz_id)

    store.fetch_quiz = gated_fetch_quiz
    registry = QuizSessionRegistry(store, auto_tick=False)

    blocked = asyncio.create_task(registry.start(1, STUDENT))
    await asyncio.sleep(0)
    other = await asyncio.wait_for(registry.start(1, STUDENT + 1), timeout=1)

    assert other.student_id == STUDENT + 1
    assert not blocked.done()

    release.set()
    first = await blocked
    assert first.student_id == STUDENT
    assert len(registry) == 2
    await registry.close_all()


async def test_registry_concurrent_starts_share_one_session(store):
    store.add_quiz(1, questions=[0])
    registry = QuizSessionRegistry(store, auto_tick=False)

    first, second = await asyncio.gather(registry.start(1, STUDENT), registry.start(1, STUDENT))

    assert first is second
    assert len(registry) == 1
    assert registry._key_locks == {}
    await registry.close_all()
