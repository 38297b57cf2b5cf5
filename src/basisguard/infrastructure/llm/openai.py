"""
OpenAI completion client.

Sends the composed prompt to the chat completions API with a strict
``json_schema`` response format and maps every SDK error onto the
CompletionTransient / CompletionFatal split the retry loop understands.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, cast

import jsonschema
from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    InternalServerError,
    OpenAI,
    RateLimitError,
)

from basisguard.domain.exceptions import CompletionFatal, CompletionTransient
from basisguard.domain.interfaces import CompletionClientInterface
from basisguard.domain.models import OutputSchema, PromptPayload, RawResponse
from basisguard.schemas import validate_against

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# Conditions another attempt can plausibly fix.
TRANSIENT_ERRORS = (
    RateLimitError,
    APITimeoutError,
    APIConnectionError,
    InternalServerError,
)

# Schema keys the json_schema response format does not accept.
_WIRE_STRIPPED_KEYS = ("$schema", "$id", "title")


@dataclass
class OpenAICompletionConfig:
    """Configuration for OpenAICompletionClient.

    This typed config ensures unknown fields are rejected at construction time.
    """

    model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL
    )
    api_key: str | None = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY")
    )
    base_url: str | None = None
    timeout: float = 60.0


class OpenAICompletionClient(CompletionClientInterface):
    """Completion boundary backed by the OpenAI chat completions API."""

    config_class = OpenAICompletionConfig

    def __init__(
        self,
        config: OpenAICompletionConfig | None = None,
        client: OpenAI | None = None,
    ):
        """
        Args:
            config: Typed configuration object
            client: Pre-built SDK client (tests inject a mock here)
        """
        self._config = config or OpenAICompletionConfig()
        self._client = client or OpenAI(
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            max_retries=0,  # retries belong to the role's state machine
        )

    @property
    def model(self) -> str:
        return self._config.model

    def complete(
        self,
        prompt: PromptPayload,
        output_schema: OutputSchema,
        temperature: float,
        max_output_tokens: int,
    ) -> RawResponse:
        """Perform exactly one chat completion call."""
        messages = [{"role": turn.speaker.value, "content": turn.text} for turn in prompt]
        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": output_schema.name,
                "schema": wire_schema(output_schema),
                "strict": True,
            },
        }

        try:
            completion = self._client.chat.completions.create(
                model=self._config.model,
                messages=cast(Any, messages),
                temperature=temperature,
                max_tokens=max_output_tokens,
                response_format=cast(Any, response_format),
            )
        except TRANSIENT_ERRORS as e:
            raise CompletionTransient(
                f"OpenAI request failed transiently: {e}", cause=type(e).__name__
            ) from e
        except APIError as e:
            raise CompletionFatal(
                f"OpenAI request failed: {e}", cause=type(e).__name__
            ) from e

        if not completion.choices:
            raise CompletionFatal("No choices in OpenAI response", cause="empty")
        message = completion.choices[0].message
        content = message.content
        if not content:
            refusal = getattr(message, "refusal", None)
            if refusal:
                raise CompletionFatal(f"Model refused: {refusal}", cause="refusal")
            raise CompletionFatal("No response content from OpenAI", cause="empty")

        payload = self._parse(content, output_schema)
        logger.debug(
            "OpenAI completion (model=%s, schema=%s, finish_reason=%s)",
            self._config.model,
            output_schema.name,
            completion.choices[0].finish_reason,
        )
        return RawResponse(response_type=payload["type"], payload=payload)

    @staticmethod
    def _parse(content: str, output_schema: OutputSchema) -> dict[str, Any]:
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise CompletionFatal(
                f"Failed to parse JSON response: {e}", cause="invalid_json"
            ) from e
        if not isinstance(payload, dict):
            raise CompletionFatal(
                f"Expected JSON object, got {type(payload).__name__}",
                cause="invalid_json",
            )
        try:
            validate_against(output_schema, payload)
        except jsonschema.ValidationError as e:
            raise CompletionFatal(
                f"Response does not match {output_schema.name}: {e.message}",
                cause="schema_mismatch",
            ) from e
        return payload


def wire_schema(output_schema: OutputSchema) -> dict[str, Any]:
    """JSON schema as sent in the response format (top-level metadata removed)."""
    return {
        key: value
        for key, value in output_schema.schema.items()
        if key not in _WIRE_STRIPPED_KEYS
    }
