"""
In-memory session store.

Useful for testing and single-process deployments. Sessions expire after a
period of inactivity and are dropped lazily on access or by
cleanup_expired().
"""

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from basisguard.domain.exceptions import SessionNotFound
from basisguard.domain.interfaces import SessionStoreInterface
from basisguard.domain.models import ConversationTurn, ExerciseConfig, Role, Speaker

logger = logging.getLogger(__name__)

SESSION_TIMEOUT = 2 * 60 * 60  # seconds of inactivity

WELCOME_MESSAGE = (
    "Welcome to your BASIS training session. You will be practicing "
    "conversation techniques with a concerned parent role. The scenario: A "
    "parent is worried about their child's academic progress and wants to "
    "discuss intervention strategies."
)


@dataclass
class SessionState:
    """Mutable per-session record. Only the store touches it, under its lock."""

    session_id: str
    exercise: ExerciseConfig
    started_at: float
    last_activity_at: float
    history: list[ConversationTurn] = field(default_factory=list)


class InMemorySessionStore(SessionStoreInterface):
    """Thread-safe dict-backed session store."""

    def __init__(
        self,
        timeout: float = SESSION_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            timeout: Seconds of inactivity before a session expires
            clock: Time source in seconds (tests inject a fake)
        """
        self._sessions: dict[str, SessionState] = {}
        self._timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()

    def create_session(
        self, exercise: ExerciseConfig, session_id: str | None = None
    ) -> str:
        """Start a session seeded with the welcome message. Returns its id."""
        session_id = session_id or uuid.uuid4().hex[:12]
        now = self._clock()
        state = SessionState(
            session_id=session_id,
            exercise=exercise,
            started_at=now,
            last_activity_at=now,
            history=[ConversationTurn(Speaker.SYSTEM, WELCOME_MESSAGE)],
        )
        with self._lock:
            self._sessions[session_id] = state
        logger.info(
            "Session created (session=%s, exercise=%s)",
            session_id,
            exercise.exercise_id,
        )
        return session_id

    def _get(self, session_id: str) -> SessionState:
        # Caller holds the lock.
        state = self._sessions.get(session_id)
        if state is None:
            raise SessionNotFound(session_id)
        if self._clock() - state.last_activity_at > self._timeout:
            del self._sessions[session_id]
            logger.info("Session expired and removed (session=%s)", session_id)
            raise SessionNotFound(session_id)
        return state

    def get_session(self, session_id: str) -> SessionState:
        """
        Raises:
            SessionNotFound: If the session is unknown or expired
        """
        with self._lock:
            return self._get(session_id)

    def history(self, session_id: str) -> tuple[ConversationTurn, ...]:
        with self._lock:
            return tuple(self._get(session_id).history)

    def append_turn(self, session_id: str, turn: ConversationTurn) -> None:
        with self._lock:
            state = self._get(session_id)
            state.history.append(turn)
            state.last_activity_at = self._clock()
        logger.debug(
            "Turn appended (session=%s, speaker=%s, length=%d)",
            session_id,
            turn.speaker.value,
            len(turn.text),
        )

    def exercise(self, session_id: str) -> ExerciseConfig:
        with self._lock:
            return self._get(session_id).exercise

    def enabled_roles(self, session_id: str) -> frozenset[Role]:
        """Roles switched on by the session's exercise toggles."""
        return self.exercise(session_id).enabled_roles

    def end_session(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        with self._lock:
            state = self._sessions.pop(session_id, None)
        if state is None:
            return False
        logger.info(
            "Session ended (session=%s, duration=%.0fs, turns=%d)",
            session_id,
            self._clock() - state.started_at,
            len(state.history),
        )
        return True

    def active_sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def cleanup_expired(self) -> int:
        """Drop every expired session. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [
                sid
                for sid, state in self._sessions.items()
                if now - state.last_activity_at > self._timeout
            ]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Cleaned up %d expired sessions", len(expired))
        return len(expired)
