"""
Domain interfaces (Ports) for the agent response pipeline.

These abstract base classes define the contracts that adapters must satisfy.
They have no external dependencies.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from basisguard.domain.audit import AuditEvent
    from basisguard.domain.models import (
        ConversationTurn,
        ExerciseConfig,
        OutputSchema,
        PromptPayload,
        RawResponse,
        Role,
        Violation,
    )


class CompletionClientInterface(ABC):
    """
    Port for the language-model completion service.

    Note (Schema-constrained decoding):
        A returned RawResponse structurally matches output_schema. When the
        service cannot produce a conformant payload the client raises
        CompletionError instead of returning malformed data.

    Note (At-most-once):
        complete() performs one service call and never retries on its own.
        Retries belong to the caller. Implementations must be safe to call
        from several threads at once.
    """

    @abstractmethod
    def complete(
        self,
        prompt: "PromptPayload",
        output_schema: "OutputSchema",
        temperature: float,
        max_output_tokens: int,
    ) -> "RawResponse":
        """
        Produce one schema-conformant response.

        Args:
            prompt: Ordered conversation turns to send
            output_schema: Output contract the payload must satisfy
            temperature: Sampling temperature
            max_output_tokens: Upper bound on generated tokens

        Returns:
            RawResponse tagged with the payload's discriminant

        Raises:
            CompletionTransient: Retryable condition (rate limit, timeout)
            CompletionFatal: Anything else
        """
        pass


class GuardInterface(ABC):
    """
    Port for response validation.

    Guards are deterministic validators over a produced response. An empty
    result means the response is compliant.
    """

    @abstractmethod
    def validate(
        self, role: "Role", response: "RawResponse"
    ) -> tuple["Violation", ...]:
        """
        Validate a response produced by a role.

        Args:
            role: Role that produced the response
            response: Response to check

        Returns:
            Every violation found, in rule order
        """
        pass


class AuditSinkInterface(ABC):
    """
    Port for the audit log collaborator.

    Callers treat emission as best-effort: a failing sink never changes a
    turn's outcome.
    """

    @abstractmethod
    def record(self, event: "AuditEvent") -> None:
        """Persist or forward one audit event."""
        pass


class SessionStoreInterface(ABC):
    """
    Port for session storage.

    Holds the append-only conversation log and the per-session role toggles.
    """

    @abstractmethod
    def history(self, session_id: str) -> tuple["ConversationTurn", ...]:
        """
        Snapshot of the session's conversation log, oldest first.

        Raises:
            SessionNotFound: If the session is unknown or expired
        """
        pass

    @abstractmethod
    def append_turn(self, session_id: str, turn: "ConversationTurn") -> None:
        """
        Append one turn to the session's log.

        Raises:
            SessionNotFound: If the session is unknown or expired
        """
        pass

    @abstractmethod
    def exercise(self, session_id: str) -> "ExerciseConfig":
        """
        Exercise configuration the session was started with.

        Raises:
            SessionNotFound: If the session is unknown or expired
        """
        pass
