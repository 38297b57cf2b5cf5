"""
Domain models for the agent response pipeline.

These are pure data structures. Everything crossing a branch or attempt
boundary is a frozen dataclass so it can be handed to another thread
without copying.
"""

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

# =============================================================================
# ROLES
# =============================================================================


class Role(str, Enum):
    """Closed set of agent roles."""

    NAVIGATOR = "navigator"  # forward guidance
    ANALYST = "analyst"  # retrospective analysis
    REVIEWER = "reviewer"  # holistic review


class Speaker(str, Enum):
    """Role tag of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class OutputSchema:
    """Output-shape contract for one role."""

    name: str  # e.g. "navigator_response"
    response_type: str  # discriminant, e.g. "feedforward"
    schema: Mapping[str, Any]


@dataclass(frozen=True)
class RoleConfig:
    """Read-only configuration for a single role."""

    role: Role
    prompt_template: str
    output_schema: OutputSchema
    temperature: float
    max_output_tokens: int
    max_attempts: int
    requires_user_text: bool = False
    depends_on: Role | None = None  # role whose same-turn output may be read

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(
                f"{self.role.value}: max_attempts must be >= 1, got {self.max_attempts}"
            )
        if self.max_output_tokens < 1:
            raise ValueError(
                f"{self.role.value}: max_output_tokens must be >= 1, "
                f"got {self.max_output_tokens}"
            )
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(
                f"{self.role.value}: temperature must be in [0, 2], "
                f"got {self.temperature}"
            )


# =============================================================================
# CONVERSATION AND REQUEST CONTEXT
# =============================================================================


@dataclass(frozen=True)
class ConversationTurn:
    """Single entry in a session's append-only conversation log."""

    speaker: Speaker
    text: str


@dataclass(frozen=True)
class ExerciseConfig:
    """Exercise a session was started with, including per-role toggles."""

    exercise_id: str
    title: str = ""
    focus_hint: str = ""
    case_role: str = ""
    case_background: str = ""
    protocols: tuple[str, ...] = ("basis-v1",)
    feedforward: bool = True  # navigator
    iterative: bool = True  # analyst
    holistic: bool = False  # reviewer, per turn

    @property
    def enabled_roles(self) -> frozenset[Role]:
        toggles = {
            Role.NAVIGATOR: self.feedforward,
            Role.ANALYST: self.iterative,
            Role.REVIEWER: self.holistic,
        }
        return frozenset(role for role, enabled in toggles.items() if enabled)


def _freeze(value: Any) -> Any:
    """Deep read-only copy: dicts become mapping proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def _strings(value: Any) -> Iterator[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, Mapping):
        for key, item in value.items():
            yield str(key)
            yield from _strings(item)
    elif isinstance(value, tuple):
        for item in value:
            yield from _strings(item)


@dataclass(frozen=True)
class RawResponse:
    """Structured payload returned by the completion boundary."""

    response_type: str  # discriminant copied from payload["type"]
    payload: Mapping[str, Any]
    attempt: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _freeze(self.payload))

    def strings(self) -> tuple[str, ...]:
        """Every key and string value of the payload, decoded, depth first."""
        return tuple(_strings(self.payload))

    def to_text(self) -> str:
        """Serialize the payload the way it is shown to the user."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        return _thaw(self.payload)


@dataclass(frozen=True)
class SituationalParameters:
    """Role-specific situational inputs for one composed request."""

    focus_hint: str = ""
    case_role: str = ""
    case_background: str = ""
    turn_count: int = 0
    prior_analysis: RawResponse | None = None  # None: no prior analysis this turn


@dataclass(frozen=True)
class RequestContext:
    """Immutable snapshot that conditions every attempt of one branch."""

    session_id: str
    role: Role
    protocols: tuple[str, ...]
    history: tuple[ConversationTurn, ...]  # most recent K turns only
    situation: SituationalParameters
    directive: str
    user_text: str | None = None


# Literal prompt payload sent to the completion boundary.
PromptPayload = tuple[ConversationTurn, ...]


# =============================================================================
# GUARDRAIL VIOLATIONS AND ATTEMPT OUTCOMES
# =============================================================================


@dataclass(frozen=True)
class Violation:
    """One guardrail rule that matched a response."""

    role: Role
    rule_id: str
    matches: tuple[str, ...]
    pattern: str = ""


@dataclass(frozen=True)
class Success:
    """Attempt produced a compliant response."""

    response: RawResponse


@dataclass(frozen=True)
class Retryable:
    """Attempt failed in a way that may be retried."""

    violations: tuple[Violation, ...] = ()
    response: RawResponse | None = None  # violating payload, if any
    error: str = ""  # transient boundary error, if any


@dataclass(frozen=True)
class Fatal:
    """Attempt failed in a way that ends the branch."""

    error: str


AttemptOutcome = Success | Retryable | Fatal


class RetryState(str, Enum):
    """States of the per-role retry state machine."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    VALIDATING = "validating"
    RETRYING = "retrying"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


# =============================================================================
# BRANCH AND TURN RESULTS
# =============================================================================


class FailureKind(str, Enum):
    """Typed reason a branch did not produce an accepted response."""

    MISSING_INPUT = "missing_input"
    COMPLETION_FATAL = "completion_fatal"
    COMPLETION_TRANSIENT = "completion_transient"
    GUARDRAIL_EXHAUSTED = "guardrail_exhausted"
    COORDINATOR_TIMEOUT = "coordinator_timeout"


@dataclass(frozen=True)
class BranchFailure:
    """Everything known about why a branch failed."""

    kind: FailureKind
    reason: str
    last_response: RawResponse | None = None
    violations: tuple[Violation, ...] = ()  # full history across attempts
    attempts: int = 0


@dataclass(frozen=True)
class BranchResult:
    """Terminal outcome of one role's retry state machine."""

    role: Role
    response: RawResponse | None = None
    failure: BranchFailure | None = None
    attempts: int = 0
    trace: tuple[RetryState, ...] = ()

    def __post_init__(self) -> None:
        if (self.response is None) == (self.failure is None):
            raise ValueError("BranchResult needs exactly one of response or failure")

    @property
    def accepted(self) -> bool:
        return self.response is not None

    @property
    def state(self) -> RetryState:
        return RetryState.ACCEPTED if self.accepted else RetryState.EXHAUSTED

    def to_dict(self) -> dict[str, Any]:
        failure = self.failure
        if failure is None:
            return {
                "status": "accepted",
                "attempts": self.attempts,
                "response": self.response.to_dict() if self.response else None,
            }
        return {
            "status": "failed",
            "attempts": self.attempts,
            "error": failure.kind.value,
            "reason": failure.reason,
            "raw": failure.last_response.to_dict() if failure.last_response else None,
            "violations": [
                {"rule_id": v.rule_id, "matches": list(v.matches)}
                for v in failure.violations
            ],
        }


@dataclass(frozen=True)
class TurnResult:
    """Per-turn aggregate of every requested role's outcome."""

    session_id: str
    results: Mapping[Role, BranchResult] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "results", MappingProxyType(dict(self.results)))

    def __getitem__(self, role: Role) -> BranchResult:
        return self.results[role]

    def __contains__(self, role: object) -> bool:
        return role in self.results

    def __len__(self) -> int:
        return len(self.results)

    @property
    def roles(self) -> frozenset[Role]:
        return frozenset(self.results)

    def accepted(self) -> dict[Role, RawResponse]:
        """Validated responses, keyed by role."""
        return {
            role: result.response
            for role, result in self.results.items()
            if result.response is not None
        }

    def failures(self) -> dict[Role, BranchFailure]:
        """Typed failures, keyed by role."""
        return {
            role: result.failure
            for role, result in self.results.items()
            if result.failure is not None
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "agents": {
                role.value: result.to_dict() for role, result in self.results.items()
            },
        }
