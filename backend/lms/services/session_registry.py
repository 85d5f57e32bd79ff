"""In-process registry of live quiz sessions, one per (student, quiz).

A session leaves the live table as soon as it is submitted. Its result is
kept in a small most-recent-first cache so the student can still read it
back, and the oldest results fall out once the cache is full.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Dict, Optional, Tuple

from lms.config import settings
from lms.exceptions import NotFoundError
from lms.services.quiz_session import QuizSession
from lms.services.store import LearningStore

logger = logging.getLogger("classroom-lms.quiz")

SessionKey = Tuple[int, int]


class QuizSessionRegistry:
    def __init__(
        self,
        store: LearningStore,
        *,
        tick_seconds: Optional[float] = None,
        auto_tick: bool = True,
        finished_capacity: Optional[int] = None,
    ):
        self.store = store
        self.tick_seconds = tick_seconds
        self.auto_tick = auto_tick
        self.finished_capacity = (
            settings.QUIZ_FINISHED_SESSIONS_KEPT if finished_capacity is None else finished_capacity
        )
        self._sessions: Dict[SessionKey, QuizSession] = {}
        self._finished: "OrderedDict[SessionKey, QuizSession]" = OrderedDict()
        # One lock per key, dropped once nobody is waiting on it.
        self._key_locks: Dict[SessionKey, asyncio.Lock] = {}
        self._key_waiters: Dict[SessionKey, int] = {}

    def __len__(self) -> int:
        """Number of live (unsubmitted) sessions."""
        return len(self._sessions)

    @property
    def finished_count(self) -> int:
        return len(self._finished)

    async def start(self, quiz_id: int, student_id: int) -> QuizSession:
        """Return the student's live session for the quiz, or load a fresh one.

        Starts for the same student and quiz are serialized; starts for
        different keys load concurrently.
        """
        key = (student_id, quiz_id)
        lock = self._key_locks.setdefault(key, asyncio.Lock())
        self._key_waiters[key] = self._key_waiters.get(key, 0) + 1
        try:
            async with lock:
                existing = self._sessions.get(key)
                if existing is not None and existing.is_live:
                    return existing
                if existing is not None:
                    await existing.close()
                    del self._sessions[key]

                session = QuizSession(
                    self.store,
                    quiz_id,
                    student_id,
                    tick_seconds=self.tick_seconds,
                    auto_tick=self.auto_tick,
                    on_finished=self._session_finished,
                )
                await session.load()
                self._finished.pop(key, None)
                self._sessions[key] = session
                return session
        finally:
            self._key_waiters[key] -= 1
            if self._key_waiters[key] == 0:
                del self._key_waiters[key]
                del self._key_locks[key]

    def _session_finished(self, session: QuizSession) -> None:
        key = (session.student_id, session.quiz_id)
        if self._sessions.get(key) is not session:
            return
        del self._sessions[key]
        if self.finished_capacity <= 0:
            return
        self._finished[key] = session
        self._finished.move_to_end(key)
        while len(self._finished) > self.finished_capacity:
            self._finished.popitem(last=False)

    def get(self, quiz_id: int, student_id: int) -> QuizSession:
        key = (student_id, quiz_id)
        session = self._sessions.get(key) or self._finished.get(key)
        if session is None:
            raise NotFoundError("No quiz session in progress")
        return session

    async def abandon(self, quiz_id: int, student_id: int) -> None:
        key = (student_id, quiz_id)
        session = self._sessions.pop(key, None) or self._finished.pop(key, None)
        if session is None:
            raise NotFoundError("No quiz session in progress")
        await session.close()

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        self._finished.clear()
        for session in sessions:
            await session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} quiz session(s)")
