"""
Domain layer for the agent response pipeline.

Contains core business logic with no dependencies on the application or
infrastructure layers.
"""

from basisguard.domain.audit import AuditEvent, AuditEventType
from basisguard.domain.exceptions import (
    CompletionError,
    CompletionFatal,
    CompletionTransient,
    ConfigurationError,
    MissingInput,
    SessionNotFound,
)
from basisguard.domain.guardrails import DEFAULT_RULES, GuardrailRule, RuleTable
from basisguard.domain.interfaces import (
    AuditSinkInterface,
    CompletionClientInterface,
    GuardInterface,
    SessionStoreInterface,
)
from basisguard.domain.models import (
    AttemptOutcome,
    BranchFailure,
    BranchResult,
    ConversationTurn,
    ExerciseConfig,
    Fatal,
    FailureKind,
    OutputSchema,
    PromptPayload,
    RawResponse,
    RequestContext,
    Retryable,
    RetryState,
    Role,
    RoleConfig,
    SituationalParameters,
    Speaker,
    Success,
    TurnResult,
    Violation,
)
from basisguard.domain.prompts import ContextComposer, parse_transcript

__all__ = [
    # Models
    "Role",
    "Speaker",
    "RoleConfig",
    "OutputSchema",
    "ExerciseConfig",
    "ConversationTurn",
    "SituationalParameters",
    "RequestContext",
    "PromptPayload",
    "RawResponse",
    "Violation",
    "AttemptOutcome",
    "Success",
    "Retryable",
    "Fatal",
    "RetryState",
    "FailureKind",
    "BranchFailure",
    "BranchResult",
    "TurnResult",
    # Audit
    "AuditEvent",
    "AuditEventType",
    # Guardrail rules
    "GuardrailRule",
    "RuleTable",
    "DEFAULT_RULES",
    # Composition
    "ContextComposer",
    "parse_transcript",
    # Interfaces
    "CompletionClientInterface",
    "GuardInterface",
    "AuditSinkInterface",
    "SessionStoreInterface",
    # Exceptions
    "ConfigurationError",
    "SessionNotFound",
    "MissingInput",
    "CompletionError",
    "CompletionTransient",
    "CompletionFatal",
]
