"""
Domain exceptions for the agent response pipeline.

Only caller errors and completion-boundary signals are exceptions. Branch
failures are recorded as BranchFailure values, not raised.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from basisguard.domain.models import Role


class ConfigurationError(Exception):
    """Raised when role or pipeline configuration is invalid or missing."""

    pass


class SessionNotFound(KeyError):
    """Raised when a session id is unknown or the session has expired."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session '{self.session_id}' not found or expired"


class MissingInput(Exception):
    """
    Raised by the context composer when a role that needs user text gets none.

    This is a caller error and is never retried.
    """

    def __init__(self, role: "Role"):
        super().__init__(f"Role '{role.value}' requires user text to analyze")
        self.role = role


class CompletionError(Exception):
    """
    Raised by a completion client when no schema-conformant payload exists.

    Subclasses tell the retry loop whether another attempt may help.
    """

    retryable: bool = False

    def __init__(self, message: str, cause: str = ""):
        """
        Args:
            message: Human-readable error message
            cause: Provider-specific error class or code, for diagnostics
        """
        super().__init__(message)
        self.cause = cause


class CompletionTransient(CompletionError):
    """Recoverable boundary signal (rate limited, timed out, unavailable)."""

    retryable = True


class CompletionFatal(CompletionError):
    """Non-recoverable boundary failure. Ends the branch immediately."""

    retryable = False
