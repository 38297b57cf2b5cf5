"""
Application layer for the agent response pipeline.

Contains use cases and orchestration logic that coordinates domain objects.
"""

from basisguard.application.action_pair import ActionPair
from basisguard.application.agent import RoleAgent
from basisguard.application.audit import AuditEmitter, QueuedAuditSink
from basisguard.application.coordinator import (
    CompletedBranches,
    FanOutCoordinator,
    TurnRequest,
)
from basisguard.application.turns import TurnProcessor

__all__ = [
    "ActionPair",
    "AuditEmitter",
    "CompletedBranches",
    "FanOutCoordinator",
    "QueuedAuditSink",
    "RoleAgent",
    "TurnProcessor",
    "TurnRequest",
]
