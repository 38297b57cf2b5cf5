"""
Persistence adapters for session storage.
"""

from basisguard.infrastructure.persistence.memory import (
    InMemorySessionStore,
    SessionState,
)

__all__ = [
    "InMemorySessionStore",
    "SessionState",
]
