"""Tests for OpenAICompletionClient."""

import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest
from conftest import make_analyst_payload, make_navigator_payload

from basisguard.domain.exceptions import CompletionFatal, CompletionTransient
from basisguard.domain.models import ConversationTurn, Role, Speaker
from basisguard.infrastructure.llm.openai import (
    OpenAICompletionClient,
    OpenAICompletionConfig,
    wire_schema,
)
from basisguard.schemas import get_output_schema

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

PROMPT = (
    ConversationTurn(Speaker.SYSTEM, "Du är Analyst-agenten."),
    ConversationTurn(Speaker.USER, "Jag förstår din oro."),
)


def _completion(content: str | None, refusal: str | None = None) -> Any:
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])


def _status_error(cls: type, status: int) -> Exception:
    response = httpx.Response(status, request=_REQUEST)
    return cls("error", response=response, body=None)


def _client_returning(value: Any = None, side_effect: Any = None) -> MagicMock:
    sdk = MagicMock()
    sdk.chat.completions.create.return_value = value
    sdk.chat.completions.create.side_effect = side_effect
    return sdk


# =============================================================================
# CONFIG TESTS
# =============================================================================


class TestOpenAICompletionConfig:
    """Tests for OpenAICompletionConfig defaults."""

    def test_default_model(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            config = OpenAICompletionConfig()
        assert config.model == "gpt-4o-mini"
        assert config.api_key is None

    def test_env_overrides(self) -> None:
        with patch.dict(
            "os.environ", {"OPENAI_MODEL": "gpt-4o", "OPENAI_API_KEY": "sk-test"}
        ):
            config = OpenAICompletionConfig()
        assert config.model == "gpt-4o"
        assert config.api_key == "sk-test"

    def test_sdk_client_built_without_sdk_retries(self) -> None:
        config = OpenAICompletionConfig(model="gpt-4o", api_key="sk-test", timeout=30.0)
        with patch("basisguard.infrastructure.llm.openai.OpenAI") as sdk_cls:
            OpenAICompletionClient(config)

        sdk_cls.assert_called_once_with(
            api_key="sk-test", base_url=None, timeout=30.0, max_retries=0
        )


# =============================================================================
# REQUEST TESTS
# =============================================================================


class TestOpenAICompletionRequest:
    """Tests for the request sent to the SDK."""

    def test_strict_json_schema_request(self) -> None:
        schema = get_output_schema(Role.ANALYST)
        sdk = _client_returning(_completion(json.dumps(make_analyst_payload())))
        client = OpenAICompletionClient(OpenAICompletionConfig(model="gpt-4o"), client=sdk)

        client.complete(PROMPT, schema, temperature=0.3, max_output_tokens=600)

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 600
        assert kwargs["messages"] == [
            {"role": "system", "content": "Du är Analyst-agenten."},
            {"role": "user", "content": "Jag förstår din oro."},
        ]
        response_format = kwargs["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["name"] == "analyst_response"
        assert response_format["json_schema"]["strict"] is True

    def test_wire_schema_drops_metadata(self) -> None:
        wire = wire_schema(get_output_schema(Role.NAVIGATOR))

        assert "$schema" not in wire
        assert "title" not in wire
        assert wire["additionalProperties"] is False


# =============================================================================
# RESPONSE TESTS
# =============================================================================


class TestOpenAICompletionResponse:
    """Tests for response parsing and error mapping."""

    def test_valid_payload_returned(self) -> None:
        payload = make_navigator_payload()
        sdk = _client_returning(_completion(json.dumps(payload, ensure_ascii=False)))
        client = OpenAICompletionClient(OpenAICompletionConfig(), client=sdk)

        response = client.complete(
            PROMPT, get_output_schema(Role.NAVIGATOR), temperature=0.7, max_output_tokens=800
        )

        assert response.response_type == "feedforward"
        assert response.to_dict() == payload

    def test_empty_content_is_fatal(self) -> None:
        client = OpenAICompletionClient(
            OpenAICompletionConfig(), client=_client_returning(_completion(None))
        )

        with pytest.raises(CompletionFatal, match="No response content"):
            client.complete(PROMPT, get_output_schema(Role.ANALYST), 0.3, 600)

    def test_refusal_is_fatal(self) -> None:
        client = OpenAICompletionClient(
            OpenAICompletionConfig(),
            client=_client_returning(_completion(None, refusal="I can't help")),
        )

        with pytest.raises(CompletionFatal, match="refused"):
            client.complete(PROMPT, get_output_schema(Role.ANALYST), 0.3, 600)

    def test_invalid_json_is_fatal(self) -> None:
        client = OpenAICompletionClient(
            OpenAICompletionConfig(), client=_client_returning(_completion("{not json"))
        )

        with pytest.raises(CompletionFatal) as exc_info:
            client.complete(PROMPT, get_output_schema(Role.ANALYST), 0.3, 600)
        assert exc_info.value.cause == "invalid_json"
        assert not exc_info.value.retryable

    def test_schema_mismatch_is_fatal(self) -> None:
        payload = make_analyst_payload()
        payload["extra"] = "not allowed"
        client = OpenAICompletionClient(
            OpenAICompletionConfig(),
            client=_client_returning(_completion(json.dumps(payload))),
        )

        with pytest.raises(CompletionFatal) as exc_info:
            client.complete(PROMPT, get_output_schema(Role.ANALYST), 0.3, 600)
        assert exc_info.value.cause == "schema_mismatch"

    @pytest.mark.parametrize(
        "error",
        [
            _status_error(openai.RateLimitError, 429),
            _status_error(openai.InternalServerError, 503),
            openai.APITimeoutError(request=_REQUEST),
            openai.APIConnectionError(request=_REQUEST),
        ],
        ids=["rate_limit", "server_error", "timeout", "connection"],
    )
    def test_transient_errors(self, error: Exception) -> None:
        client = OpenAICompletionClient(
            OpenAICompletionConfig(), client=_client_returning(side_effect=error)
        )

        with pytest.raises(CompletionTransient) as exc_info:
            client.complete(PROMPT, get_output_schema(Role.ANALYST), 0.3, 600)
        assert exc_info.value.retryable
        assert exc_info.value.cause == type(error).__name__

    @pytest.mark.parametrize(
        "error",
        [
            _status_error(openai.AuthenticationError, 401),
            _status_error(openai.BadRequestError, 400),
        ],
        ids=["auth", "bad_request"],
    )
    def test_fatal_api_errors(self, error: Exception) -> None:
        client = OpenAICompletionClient(
            OpenAICompletionConfig(), client=_client_returning(side_effect=error)
        )

        with pytest.raises(CompletionFatal):
            client.complete(PROMPT, get_output_schema(Role.ANALYST), 0.3, 600)
