"""
Guards for the agent response pipeline.

Guards are deterministic validators over the serialized output a role
produced. They never look at how the output was derived.
"""

from basisguard.guards.temporal import TemporalGuard, violation_messages

__all__ = [
    "TemporalGuard",
    "violation_messages",
]
