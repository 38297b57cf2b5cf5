"""
Completion client adapters.
"""

from basisguard.infrastructure.llm.mock import MockCall, MockCompletionClient
from basisguard.infrastructure.llm.openai import (
    OpenAICompletionClient,
    OpenAICompletionConfig,
)

__all__ = [
    "MockCall",
    "MockCompletionClient",
    "OpenAICompletionClient",
    "OpenAICompletionConfig",
]
