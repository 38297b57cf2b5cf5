"""
basisguard: guarded multi-agent feedback for conversation training.

Each enabled role (navigator, analyst, reviewer) runs a bounded
generate-validate-retry state machine against a structured completion
service. Responses that break the role's temporal-direction policy are
regenerated; roles run in parallel and fail independently.

Example:
    from basisguard import ExerciseConfig, InMemorySessionStore, build_turn_processor

    sessions = InMemorySessionStore()
    session_id = sessions.create_session(ExerciseConfig(exercise_id="demo-001"))
    processor = build_turn_processor(sessions)  # OpenAI client, env settings
    result = processor.process_turn(session_id, "Jag förstår att du är orolig.")
    for role, response in result.accepted().items():
        print(role.value, response.payload)
"""

# Application layer (orchestration)
from basisguard.application.action_pair import ActionPair
from basisguard.application.agent import RoleAgent
from basisguard.application.coordinator import FanOutCoordinator, TurnRequest
from basisguard.application.turns import TurnProcessor

# Configuration
from basisguard.bootstrap import build_turn_processor
from basisguard.config import PipelineConfig, load_role_configs

# Domain exceptions
from basisguard.domain.exceptions import (
    CompletionError,
    CompletionFatal,
    CompletionTransient,
    ConfigurationError,
    MissingInput,
    SessionNotFound,
)

# Domain interfaces (for type hints and custom implementations)
from basisguard.domain.interfaces import (
    AuditSinkInterface,
    CompletionClientInterface,
    GuardInterface,
    SessionStoreInterface,
)
from basisguard.domain.models import (
    BranchFailure,
    BranchResult,
    ConversationTurn,
    ExerciseConfig,
    FailureKind,
    RawResponse,
    RetryState,
    Role,
    RoleConfig,
    SituationalParameters,
    Speaker,
    TurnResult,
    Violation,
)
from basisguard.domain.prompts import ContextComposer

# Guards
from basisguard.guards import TemporalGuard

# Infrastructure (explicit import encouraged for dependency injection)
from basisguard.infrastructure.llm import MockCompletionClient
from basisguard.infrastructure.persistence import InMemorySessionStore
from basisguard.logging_setup import LoggingConfig, setup_logging

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
    "BranchFailure",
    "BranchResult",
    "ConversationTurn",
    "ExerciseConfig",
    "FailureKind",
    "RawResponse",
    "RetryState",
    "Role",
    "RoleConfig",
    "SituationalParameters",
    "Speaker",
    "TurnResult",
    "Violation",
    "ContextComposer",
    # Domain interfaces
    "AuditSinkInterface",
    "CompletionClientInterface",
    "GuardInterface",
    "SessionStoreInterface",
    # Domain exceptions
    "CompletionError",
    "CompletionFatal",
    "CompletionTransient",
    "ConfigurationError",
    "MissingInput",
    "SessionNotFound",
    # Configuration
    "LoggingConfig",
    "PipelineConfig",
    "build_turn_processor",
    "load_role_configs",
    "setup_logging",
    # Application layer
    "ActionPair",
    "FanOutCoordinator",
    "RoleAgent",
    "TurnProcessor",
    "TurnRequest",
    # Guards
    "TemporalGuard",
    # Infrastructure
    "InMemorySessionStore",
    "MockCompletionClient",
]
