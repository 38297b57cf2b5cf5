"""Tests for TemporalGuard - role-specific temporal-direction validation."""

from typing import Any

import pytest
from conftest import make_analyst_payload, make_navigator_payload, make_reviewer_payload

from basisguard.domain.guardrails import GuardrailRule
from basisguard.domain.models import RawResponse, Role
from basisguard.guards import TemporalGuard, violation_messages


def _response(payload: dict[str, Any]) -> RawResponse:
    return RawResponse(response_type=payload["type"], payload=payload)


@pytest.fixture
def guard() -> TemporalGuard:
    return TemporalGuard()


class TestTemporalGuardCompliant:
    """Compliant responses produce no violations."""

    def test_navigator_payload_passes(self, guard: TemporalGuard) -> None:
        assert guard.validate(Role.NAVIGATOR, _response(make_navigator_payload())) == ()

    def test_analyst_payload_passes(self, guard: TemporalGuard) -> None:
        assert guard.validate(Role.ANALYST, _response(make_analyst_payload())) == ()

    def test_reviewer_payload_passes(self, guard: TemporalGuard) -> None:
        assert guard.validate(Role.REVIEWER, _response(make_reviewer_payload())) == ()


class TestTemporalGuardViolations:
    """Forbidden language is reported per rule."""

    def test_analyst_forward_looking_swedish(self, guard: TemporalGuard) -> None:
        payload = make_analyst_payload(
            feedback="Bra början. Nästa gång, fokusera på att ställa öppna frågor."
        )

        violations = guard.validate(Role.ANALYST, _response(payload))

        assert [v.rule_id for v in violations] == ["analyst.feedforward.sv"]
        assert violations[0].matches == ("Nästa gång",)
        assert violations[0].role == Role.ANALYST

    def test_same_text_is_allowed_for_navigator(self, guard: TemporalGuard) -> None:
        payload = make_navigator_payload(
            user_prompt="Nästa gång, fokusera på att ställa öppna frågor till föräldern."
        )

        assert guard.validate(Role.NAVIGATOR, _response(payload)) == ()

    def test_navigator_retrospective_english(self, guard: TemporalGuard) -> None:
        payload = make_navigator_payload(
            user_prompt="You just validated the parent's feelings, keep that tone."
        )

        violations = guard.validate(Role.NAVIGATOR, _response(payload))

        assert [v.rule_id for v in violations] == ["navigator.retrospective.en"]
        assert violations[0].matches == ("You just",)

    def test_every_matching_rule_reported(self, guard: TemporalGuard) -> None:
        payload = make_analyst_payload(
            feedback="Going forward, tänk på detta i framtiden och nästa gång."
        )

        violations = guard.validate(Role.ANALYST, _response(payload))

        assert {v.rule_id for v in violations} == {
            "analyst.feedforward.sv",
            "analyst.feedforward.en",
            "analyst.future_planning",
        }

    def test_reviewer_segment_language(self, guard: TemporalGuard) -> None:
        payload = make_reviewer_payload(
            summary=(
                "In this reply the student was calm, but the overall pattern "
                "shows steady growth in empathy across the conversation."
            )
        )

        violations = guard.validate(Role.REVIEWER, _response(payload))

        assert [v.rule_id for v in violations] == ["reviewer.segment.en"]


class TestTemporalGuardLineBreaks:
    """Phrases are found regardless of how the string is laid out."""

    def test_analyst_phrase_after_line_break(self, guard: TemporalGuard) -> None:
        payload = make_analyst_payload(
            feedback="Bra empati i repliken.\nNästa gång, ställ fler frågor."
        )

        violations = guard.validate(Role.ANALYST, _response(payload))

        assert [v.rule_id for v in violations] == ["analyst.feedforward.sv"]
        assert violations[0].matches == ("Nästa gång",)

    def test_navigator_phrase_after_line_break(self, guard: TemporalGuard) -> None:
        payload = make_navigator_payload(user_prompt="Fokus.\nDu gjorde bra ifrån dig.")

        violations = guard.validate(Role.NAVIGATOR, _response(payload))

        assert [v.rule_id for v in violations] == ["navigator.retrospective.sv"]

    def test_phrase_after_tab_and_quote(self, guard: TemporalGuard) -> None:
        payload = make_analyst_payload(feedback='Citat:\t"Framöver" sa du.')

        violations = guard.validate(Role.ANALYST, _response(payload))

        assert violations[0].matches == ("Framöver",)

    def test_nested_list_values_are_scanned(self, guard: TemporalGuard) -> None:
        payload = make_reviewer_payload()
        payload["growth_areas"] = ["Öppna frågor", "Lugnare tempo\njust nu i samtalet"]

        violations = guard.validate(Role.REVIEWER, _response(payload))

        assert [v.rule_id for v in violations] == ["reviewer.segment.sv"]

    def test_strings_are_not_joined_across_values(self, guard: TemporalGuard) -> None:
        payload = make_analyst_payload()
        payload["evidence_quotes"] = ["Jag hörde", "nästan allt"]

        assert guard.validate(Role.ANALYST, _response(payload)) == ()


class TestTemporalGuardProperties:
    """Purity and order independence."""

    def test_deterministic(self, guard: TemporalGuard) -> None:
        response = _response(make_analyst_payload(feedback="Nästa gång, var tydligare."))

        assert guard.validate(Role.ANALYST, response) == guard.validate(
            Role.ANALYST, response
        )

    def test_rule_order_does_not_change_the_set(self) -> None:
        rules = (
            GuardrailRule(rule_id="a", pattern=r"\bframöver\b"),
            GuardrailRule(rule_id="b", pattern=r"\bnästa gång\b"),
        )
        forward = TemporalGuard({Role.ANALYST: rules})
        backward = TemporalGuard({Role.ANALYST: tuple(reversed(rules))})
        text = "Framöver och nästa gång"

        assert {v.rule_id for v in forward.check_text(Role.ANALYST, text)} == {
            v.rule_id for v in backward.check_text(Role.ANALYST, text)
        }

    def test_role_without_rules_always_passes(self) -> None:
        guard = TemporalGuard({})

        assert not guard.has_violations(Role.NAVIGATOR, "you just did it previously")


class TestViolationMessages:
    """Tests for violation_messages()."""

    def test_message_names_role_and_constraint(self, guard: TemporalGuard) -> None:
        violations = guard.check_text(Role.NAVIGATOR, "Previously you did well")

        assert violation_messages(violations) == [
            'Navigator agent violated feedforward constraint by using '
            'retrospective language: "Previously"'
        ]
