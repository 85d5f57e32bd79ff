import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import itertools
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import lms.models  # noqa: F401
from lms.database import Base, get_db
from lms.exceptions import AttemptExistsError, PersistenceError, StoreReadError
from lms.models.classroom import Classroom
from lms.models.material import Material
from lms.models.quiz import Question, Quiz, QuizAttempt
from lms.models.user import Profile, UserRole
from lms.services.session_registry import QuizSessionRegistry
from lms.services.sql_store import SqlLearningStore
from lms.services.store import LearningStore, ViewRecord, ViewTable


class InMemoryStore(LearningStore):
    """Dict-backed store with switches for injecting failures."""

    def __init__(self):
        self._ids = itertools.count(1000)
        self.classrooms = {}
        self.enrollments = defaultdict(list)
        self.quizzes = {}
        self.questions = defaultdict(list)
        self.materials = defaultdict(list)
        self.views = {ViewTable.MATERIAL_VIEWS: [], ViewTable.VIDEO_VIEWS: []}
        self.attempts = []
        self.answers = {}

        self.fail_reads = False
        self.attempt_failures = 0
        self.answer_failures = 0
        self.fail_delete = False
        self.insert_attempt_calls = 0

    def _check_read(self):
        if self.fail_reads:
            raise StoreReadError("store offline")

    # Fixtures for building data

    def add_classroom(self, classroom_id, name="Physics", teacher_id=1):
        classroom = Classroom(id=classroom_id, name=name, code=f"C{classroom_id:05d}", created_by=teacher_id)
        self.classrooms[classroom_id] = classroom
        return classroom

    def enroll(self, classroom_id, student_id, full_name, email=None):
        student = Profile(
            id=student_id,
            email=email or f"student{student_id}@example.com",
            full_name=full_name,
            password_hash="x",
            role=UserRole.STUDENT,
        )
        self.enrollments[classroom_id].append(student)
        return student

    def add_quiz(self, quiz_id, classroom_id=1, questions=(), minutes=1, published=True, title=None):
        quiz = Quiz(
            id=quiz_id,
            classroom_id=classroom_id,
            title=title or f"Quiz {quiz_id}",
            time_limit_minutes=minutes,
            is_published=published,
            created_at=datetime.now(timezone.utc),
        )
        self.quizzes[quiz_id] = quiz
        for position, answer_key in enumerate(questions):
            question_id = quiz_id * 100 + position
            if isinstance(answer_key, int):
                question = Question(
                    id=question_id,
                    quiz_id=quiz_id,
                    position=position,
                    question_text=f"Q{position + 1}",
                    question_type="mcq",
                    options=["a", "b", "c", "d"],
                    correct_option=answer_key,
                )
            else:
                question = Question(
                    id=question_id,
                    quiz_id=quiz_id,
                    position=position,
                    question_text=f"Q{position + 1}",
                    question_type="short_answer",
                    correct_answer=answer_key,
                )
            self.questions[quiz_id].append(question)
        return quiz

    def add_material(self, material_id, classroom_id=1, material_type="document"):
        material = Material(id=material_id, classroom_id=classroom_id, title=f"M{material_id}", type=material_type)
        self.materials[classroom_id].append(material)
        return material

    def add_view(self, student_id, material_id, classroom_id=1):
        material = next(m for m in self.materials[classroom_id] if m.id == material_id)
        table = ViewTable.VIDEO_VIEWS if material.is_video else ViewTable.MATERIAL_VIEWS
        self.views[table].append(ViewRecord(student_id, classroom_id, material_id))

    def add_attempt(self, quiz_id, student_id, score, completed_at=None):
        attempt = QuizAttempt(
            id=next(self._ids),
            quiz_id=quiz_id,
            student_id=student_id,
            score=score,
            completed_at=completed_at or datetime.now(timezone.utc),
        )
        self.attempts.append(attempt)
        return attempt

    # LearningStore

    async def fetch_quiz(self, quiz_id):
        self._check_read()
        return self.quizzes.get(quiz_id)

    async def fetch_questions(self, quiz_id):
        self._check_read()
        return list(self.questions.get(quiz_id, []))

    async def fetch_quizzes(self, classroom_id):
        self._check_read()
        return [quiz for quiz in self.quizzes.values() if quiz.classroom_id == classroom_id]

    async def fetch_question_counts(self, quiz_ids):
        self._check_read()
        return {quiz_id: len(self.questions.get(quiz_id, [])) for quiz_id in quiz_ids}

    async def has_attempt(self, quiz_id, student_id):
        self._check_read()
        return any(a.quiz_id == quiz_id and a.student_id == student_id for a in self.attempts)

    async def insert_attempt(self, *, quiz_id, student_id, score, completed_at):
        self.insert_attempt_calls += 1
        if self.attempt_failures:
            self.attempt_failures -= 1
            raise PersistenceError("attempt write failed")
        if await self.has_attempt(quiz_id, student_id):
            raise AttemptExistsError("Quiz already attempted")
        return self.add_attempt(quiz_id, student_id, score, completed_at)

    async def insert_answers(self, attempt_id, answers):
        if self.answer_failures:
            self.answer_failures -= 1
            raise PersistenceError("answer write failed")
        self.answers[attempt_id] = list(answers)

    async def delete_attempt(self, attempt_id):
        if self.fail_delete:
            raise PersistenceError("delete failed")
        self.attempts = [a for a in self.attempts if a.id != attempt_id]
        self.answers.pop(attempt_id, None)

    async def fetch_attempts_for_quizzes(self, quiz_ids):
        self._check_read()
        ids = set(quiz_ids)
        return [a for a in self.attempts if a.quiz_id in ids]

    async def fetch_attempts_for_student(self, student_id):
        self._check_read()
        return [a for a in self.attempts if a.student_id == student_id]

    async def fetch_materials(self, classroom_id):
        self._check_read()
        return list(self.materials.get(classroom_id, []))

    async def fetch_views(self, table, classroom_id):
        self._check_read()
        return [view for view in self.views[table] if view.classroom_id == classroom_id]

    async def fetch_classroom(self, classroom_id):
        self._check_read()
        return self.classrooms.get(classroom_id)

    async def fetch_enrolled_students(self, classroom_id):
        self._check_read()
        return list(self.enrollments.get(classroom_id, []))

    async def fetch_enrollments_for_student(self, student_id):
        self._check_read()
        return [
            self.classrooms[classroom_id]
            for classroom_id, students in self.enrollments.items()
            if any(student.id == student_id for student in students)
        ]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def minutes_ago():
    now = datetime.now(timezone.utc)
    return lambda minutes: now - timedelta(minutes=minutes)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'lms.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_store(session_factory):
    return SqlLearningStore(session_factory)


@pytest.fixture
async def app_client(session_factory, sql_store):
    from lms.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    registry = QuizSessionRegistry(sql_store, auto_tick=False)
    app.state.store = sql_store
    app.state.quiz_sessions = registry
    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    await registry.close_all()
    app.dependency_overrides.clear()
