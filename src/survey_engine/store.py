"""SessionStore — the only place active sessions live.

Sessions are keyed by respondent id and exist between ``create`` (form
start) and ``discard`` (completion, abort, or "home").  Nothing survives
a process restart.

``turn()`` serialises event handling per respondent: each respondent has
its own FIFO ``asyncio.Lock``, so two events from the same respondent are
never interleaved while different respondents run concurrently.  All
mutations happen on the event loop thread, so plain dicts are safe here.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from survey_engine.models.question import QuestionSet
from survey_engine.models.session import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory session map plus per-respondent turn locks."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Number of turns holding or waiting for each lock
        self._waiters: dict[str, int] = {}

    def __contains__(self, respondent_id: str) -> bool:
        return respondent_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, respondent_id: str) -> Session | None:
        return self._sessions.get(respondent_id)

    def create(self, respondent_id: str, question_set: QuestionSet) -> Session:
        """Start a fresh session, replacing any session the respondent had."""
        if respondent_id in self._sessions:
            logger.info("Replacing active session for respondent %s", respondent_id)
        session = Session(respondent_id=respondent_id, question_set=question_set)
        self._sessions[respondent_id] = session
        return session

    def discard(self, respondent_id: str) -> Session | None:
        """Remove and return the respondent's session (None if there was none)."""
        return self._sessions.pop(respondent_id, None)

    @asynccontextmanager
    async def turn(self, respondent_id: str) -> AsyncIterator[None]:
        """Hold the respondent's turn lock for the duration of one event."""
        lock = self._locks.get(respondent_id)
        if lock is None:
            lock = self._locks[respondent_id] = asyncio.Lock()
        self._waiters[respondent_id] = self._waiters.get(respondent_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._waiters[respondent_id] - 1
            if remaining:
                self._waiters[respondent_id] = remaining
            else:
                # Drop idle locks so the map does not grow with every respondent
                del self._waiters[respondent_id]
                del self._locks[respondent_id]
