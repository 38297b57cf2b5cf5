"""Audit trail models for guardrail violations and branch outcomes."""

from dataclasses import dataclass
from enum import Enum

from basisguard.domain.models import Violation


class AuditEventType(str, Enum):
    """Types of audit events."""

    GUARDRAIL_VIOLATION = "GUARDRAIL_VIOLATION"
    BRANCH_OUTCOME = "BRANCH_OUTCOME"
    LATE_BRANCH_DISCARDED = "LATE_BRANCH_DISCARDED"


@dataclass(frozen=True)
class AuditEvent:
    """Single audit record.

    Emitted best-effort; never read back by the pipeline itself.
    """

    event_id: str
    event_type: AuditEventType
    session_id: str
    role: str
    attempt: int | None = None
    violations: tuple[Violation, ...] = ()
    status: str | None = None  # "accepted" or a FailureKind value
    summary: str = ""
    created_at: str = ""  # ISO 8601
