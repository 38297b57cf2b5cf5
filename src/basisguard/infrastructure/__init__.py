"""
Infrastructure layer for the agent response pipeline.

Contains adapters for external concerns (completion service, session
storage, audit sinks).
"""

from basisguard.infrastructure.audit import (
    InMemoryAuditLog,
    JsonlAuditLog,
    LoggingAuditSink,
)
from basisguard.infrastructure.llm import (
    MockCompletionClient,
    OpenAICompletionClient,
    OpenAICompletionConfig,
)
from basisguard.infrastructure.persistence import InMemorySessionStore

__all__ = [
    # Audit
    "InMemoryAuditLog",
    "JsonlAuditLog",
    "LoggingAuditSink",
    # Completion
    "MockCompletionClient",
    "OpenAICompletionClient",
    "OpenAICompletionConfig",
    # Persistence
    "InMemorySessionStore",
]
