"""Sessions: one continuous conversation each, sharing a single agent."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from nlquery.agent.engine import QueryAgent, TurnOutcome
from nlquery.agent.memory import ConversationMemory

logger = logging.getLogger(__name__)


class SessionClosedError(RuntimeError):
    """Raised when asking a question on a closed or expired session."""


class Session:
    """A conversation: ordered memory plus the schema context it started with.

    The context string is captured at creation, so a session keeps talking
    about the schema snapshot it was opened on.
    """

    def __init__(
        self,
        agent: QueryAgent,
        session_id: str | None = None,
        memory: ConversationMemory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self._agent = agent
        self._memory = memory or ConversationMemory()
        self._context = agent.system_context
        self._schema_version = agent.catalog.version
        self._clock = clock
        self._turn_lock = threading.Lock()
        self.created_at = datetime.now(UTC)
        self._last_active = clock()
        self._closed = False

    @property
    def memory(self) -> ConversationMemory:
        return self._memory

    @property
    def system_context(self) -> str:
        return self._context

    @property
    def schema_version(self) -> str:
        return self._schema_version

    @property
    def closed(self) -> bool:
        return self._closed

    def idle_seconds(self) -> float:
        return self._clock() - self._last_active

    def ask(self, question: str) -> TurnOutcome:
        """Answer ``question`` in the context of this conversation.

        On success the exchange is appended to memory as one unit. On failure
        memory is left exactly as it was.
        """
        if self._closed:
            raise SessionClosedError(f"Session {self.id} is closed")
        with self._turn_lock:
            self._last_active = self._clock()
            history = self._memory.window(self._agent.settings.memory_window)
            outcome = self._agent.run_turn(question, history, system_context=self._context)
            if outcome.ok:
                self._memory.extend(outcome.turns)
            else:
                logger.info("Session %s: turn not recorded (%s)", self.id, outcome.error_label)
            self._last_active = self._clock()
            return outcome

    def close(self) -> None:
        self._closed = True


class SessionManager:
    """Creates, looks up and expires sessions."""

    def __init__(
        self,
        agent: QueryAgent,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._agent = agent
        self._idle_timeout = (
            idle_timeout if idle_timeout is not None else agent.settings.session_idle_timeout
        )
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self) -> Session:
        session = Session(self._agent, clock=self._clock)
        with self._lock:
            self._sessions[session.id] = session
        logger.info("Session %s started (schema %s)", session.id, session.schema_version)
        return session

    def get(self, session_id: str) -> Session:
        """Look up a live session.

        Raises:
            KeyError: If the session does not exist or has expired
        """
        self.prune()
        with self._lock:
            return self._sessions[session_id]

    def close(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
            logger.info("Session %s closed", session_id)

    def prune(self) -> list[str]:
        """Close sessions idle longer than the timeout; returns their ids."""
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items() if s.idle_seconds() > self._idle_timeout
            ]
            for sid in expired:
                self._sessions.pop(sid).close()
        for sid in expired:
            logger.info("Session %s expired", sid)
        return expired

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
