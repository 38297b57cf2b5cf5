"""Tests for the schema registry."""

import jsonschema
import pytest
from conftest import make_analyst_payload, make_navigator_payload, make_reviewer_payload

from basisguard.domain.models import Role
from basisguard.schemas import get_output_schema, validate_payload


class TestOutputSchemas:
    """Tests for per-role output contracts."""

    @pytest.mark.parametrize(
        ("role", "name", "response_type"),
        [
            (Role.NAVIGATOR, "navigator_response", "feedforward"),
            (Role.ANALYST, "analyst_response", "iterative_feedback"),
            (Role.REVIEWER, "reviewer_response", "holistic_feedback"),
        ],
    )
    def test_schema_identity(self, role: Role, name: str, response_type: str) -> None:
        schema = get_output_schema(role)

        assert schema.name == name
        assert schema.response_type == response_type
        assert schema.schema["additionalProperties"] is False

    def test_fixture_payloads_conform(self) -> None:
        validate_payload(Role.NAVIGATOR, make_navigator_payload())
        validate_payload(Role.ANALYST, make_analyst_payload())
        validate_payload(Role.REVIEWER, make_reviewer_payload())

    def test_wrong_discriminant_rejected(self) -> None:
        payload = make_analyst_payload()
        payload["type"] = "feedforward"

        with pytest.raises(jsonschema.ValidationError):
            validate_payload(Role.ANALYST, payload)

    def test_bad_segment_id_rejected(self) -> None:
        payload = make_analyst_payload()
        payload["segment_id"] = "segment-1"

        with pytest.raises(jsonschema.ValidationError):
            validate_payload(Role.ANALYST, payload)

    def test_score_out_of_range_rejected(self) -> None:
        payload = make_analyst_payload(scores={"Empathy": 5})

        with pytest.raises(jsonschema.ValidationError):
            validate_payload(Role.ANALYST, payload)

    def test_schemas_not_shared_between_calls(self) -> None:
        first = get_output_schema(Role.NAVIGATOR)
        first.schema["properties"].clear()  # type: ignore[attr-defined]

        assert get_output_schema(Role.NAVIGATOR).schema["properties"]
