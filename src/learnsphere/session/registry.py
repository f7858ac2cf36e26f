"""In-memory map of browser session ids to their controllers."""

import time
import uuid
from collections import OrderedDict
from collections.abc import Callable

import structlog

from learnsphere.session.controller import SessionController

logger = structlog.get_logger()


class SessionRegistry:
    """Holds one SessionController per browser session.

    Nothing is persisted; a server restart signs everyone out. Sessions idle
    for longer than `idle_timeout_seconds` are dropped, and once
    `max_sessions` is reached the least recently used session is evicted.

    Args:
        factory: Builds a fresh controller for a new session.
        idle_timeout_seconds: Lifetime of an unused session.
        max_sessions: Upper bound on stored sessions.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        factory: Callable[[], SessionController],
        idle_timeout_seconds: float = 3600.0,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.idle_timeout_seconds = idle_timeout_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: OrderedDict[str, tuple[SessionController, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str | None) -> SessionController | None:
        """Return the live controller for `session_id` and mark it as used."""
        if not session_id:
            return None
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        controller, last_seen = entry
        now = self._clock()
        if now - last_seen > self.idle_timeout_seconds:
            del self._sessions[session_id]
            logger.info("session_expired", session_id=session_id)
            return None
        self._sessions[session_id] = (controller, now)
        self._sessions.move_to_end(session_id)
        return controller

    def get_or_create(self, session_id: str | None) -> tuple[str, SessionController]:
        controller = self.get(session_id)
        if controller is not None:
            return session_id, controller
        self._evict()
        new_id = str(uuid.uuid4())
        controller = self._factory()
        self._sessions[new_id] = (controller, self._clock())
        logger.info("session_created", session_id=new_id)
        return new_id, controller

    def peek(self, session_id: str | None) -> SessionController:
        """Existing controller, or a throwaway one that is not stored."""
        return self.get(session_id) or self._factory()

    def discard(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("session_discarded", session_id=session_id)

    def _evict(self) -> None:
        cutoff = self._clock() - self.idle_timeout_seconds
        while self._sessions:
            oldest_id, (_, last_seen) = next(iter(self._sessions.items()))
            if last_seen >= cutoff and len(self._sessions) < self.max_sessions:
                break
            del self._sessions[oldest_id]
            logger.info("session_evicted", session_id=oldest_id)
