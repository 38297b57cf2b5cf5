"""
Mock completion client for testing without an LLM.

Returns predefined payloads (or raises predefined errors) in sequence,
either from one shared script or from one script per schema name.
"""

import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from basisguard.domain.exceptions import CompletionError, CompletionFatal
from basisguard.domain.interfaces import CompletionClientInterface
from basisguard.domain.models import OutputSchema, PromptPayload, RawResponse

ScriptItem = Mapping[str, Any] | CompletionError


@dataclass(frozen=True)
class MockCall:
    """One recorded call to MockCompletionClient.complete()."""

    schema_name: str
    prompt: PromptPayload
    temperature: float
    max_output_tokens: int


class MockCompletionClient(CompletionClientInterface):
    """Returns predefined responses for testing. Thread-safe."""

    def __init__(
        self,
        responses: Sequence[ScriptItem] | Mapping[str, Sequence[ScriptItem]],
        delays: Mapping[str, float] | None = None,
    ):
        """
        Args:
            responses: Payload dicts or CompletionError instances, returned or
                raised in order. Either one list shared by every schema, or a
                dict keyed by schema name (e.g. "analyst_response").
            delays: Seconds to sleep before answering, per schema name
        """
        if isinstance(responses, Mapping):
            self._scripts = {name: list(items) for name, items in responses.items()}
            self._shared: list[ScriptItem] | None = None
        else:
            self._scripts = {}
            self._shared = list(responses)
        self._delays = dict(delays or {})
        self._positions: dict[str | None, int] = {}
        self._calls: list[MockCall] = []
        self._lock = threading.Lock()

    def complete(
        self,
        prompt: PromptPayload,
        output_schema: OutputSchema,
        temperature: float,
        max_output_tokens: int,
    ) -> RawResponse:
        """Return (or raise) the next scripted item for this schema."""
        name = output_schema.name
        with self._lock:
            self._calls.append(MockCall(name, prompt, temperature, max_output_tokens))
            key = None if self._shared is not None else name
            script = self._shared if self._shared is not None else self._scripts.get(name)
            position = self._positions.get(key, 0)
            if script is None or position >= len(script):
                raise CompletionFatal(
                    f"MockCompletionClient exhausted responses for {name}",
                    cause="mock_exhausted",
                )
            item = script[position]
            self._positions[key] = position + 1

        delay = self._delays.get(name, 0.0)
        if delay:
            time.sleep(delay)

        if isinstance(item, CompletionError):
            raise item
        return RawResponse(response_type=item["type"], payload=item)

    @property
    def calls(self) -> list[MockCall]:
        """Snapshot of every call made so far, in call order."""
        with self._lock:
            return list(self._calls)

    @property
    def call_count(self) -> int:
        """Number of times complete() has been called."""
        with self._lock:
            return len(self._calls)

    def calls_for(self, schema_name: str) -> list[MockCall]:
        return [c for c in self.calls if c.schema_name == schema_name]

    def reset(self) -> None:
        """Rewind every script and clear the call log."""
        with self._lock:
            self._positions.clear()
            self._calls.clear()
