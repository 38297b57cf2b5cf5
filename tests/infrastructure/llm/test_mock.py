"""Tests for MockCompletionClient."""

import threading

import pytest
from conftest import make_analyst_payload, make_navigator_payload

from basisguard.domain.exceptions import CompletionFatal, CompletionTransient
from basisguard.domain.models import Role
from basisguard.infrastructure.llm.mock import MockCompletionClient
from basisguard.schemas import get_output_schema

NAVIGATOR = get_output_schema(Role.NAVIGATOR)
ANALYST = get_output_schema(Role.ANALYST)


class TestMockCompletionClient:
    """Tests for scripted responses."""

    def test_shared_script_in_order(self) -> None:
        first = make_navigator_payload("Första råd till studenten om nästa replik.")
        second = make_navigator_payload("Andra råd till studenten om nästa replik.")
        client = MockCompletionClient([first, second])

        assert client.complete((), NAVIGATOR, 0.7, 800).to_dict() == first
        assert client.complete((), NAVIGATOR, 0.7, 800).to_dict() == second
        assert client.call_count == 2

    def test_per_schema_scripts_are_independent(self) -> None:
        client = MockCompletionClient(
            {
                "navigator_response": [make_navigator_payload()],
                "analyst_response": [make_analyst_payload()],
            }
        )

        assert client.complete((), ANALYST, 0.3, 600).response_type == "iterative_feedback"
        assert client.complete((), NAVIGATOR, 0.7, 800).response_type == "feedforward"

    def test_scripted_error_is_raised(self) -> None:
        client = MockCompletionClient([CompletionTransient("rate limited")])

        with pytest.raises(CompletionTransient):
            client.complete((), NAVIGATOR, 0.7, 800)

    def test_exhausted_script_is_fatal(self) -> None:
        client = MockCompletionClient({"navigator_response": []})

        with pytest.raises(CompletionFatal, match="exhausted"):
            client.complete((), NAVIGATOR, 0.7, 800)

    def test_reset_rewinds(self) -> None:
        client = MockCompletionClient([make_navigator_payload()])
        client.complete((), NAVIGATOR, 0.7, 800)

        client.reset()

        assert client.call_count == 0
        assert client.complete((), NAVIGATOR, 0.7, 800).response_type == "feedforward"

    def test_concurrent_calls_each_get_one_item(self) -> None:
        client = MockCompletionClient([make_navigator_payload()] * 20)
        errors: list[Exception] = []

        def call() -> None:
            try:
                client.complete((), NAVIGATOR, 0.7, 800)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=call) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert client.call_count == 20
        with pytest.raises(CompletionFatal):
            client.complete((), NAVIGATOR, 0.7, 800)
