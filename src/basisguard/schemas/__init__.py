"""basisguard JSON Schema definitions and validation utilities.

This module is the schema registry: one strict output schema per role,
plus the schema for role-configuration override files.

Schemas:
    - navigator.schema.json: feedforward guidance
    - analyst.schema.json: iterative (retrospective) feedback
    - reviewer.schema.json: holistic feedback
    - role_config.schema.json: role override file format

Usage:
    from basisguard.schemas import get_output_schema, validate_payload

    schema = get_output_schema(Role.ANALYST)
    validate_payload(Role.ANALYST, payload)  # Raises jsonschema.ValidationError
"""

from __future__ import annotations

import json
from importlib.resources import files
from typing import Any

import jsonschema

from basisguard.domain.models import OutputSchema, Role

_SCHEMA_FILES: dict[Role, str] = {
    Role.NAVIGATOR: "navigator.schema.json",
    Role.ANALYST: "analyst.schema.json",
    Role.REVIEWER: "reviewer.schema.json",
}


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'analyst.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("basisguard.schemas").joinpath(name).read_text(
        encoding="utf-8"
    )
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_output_schema(role: Role) -> OutputSchema:
    """Get the output contract for a role.

    Returns:
        OutputSchema with name, discriminant and JSON schema
    """
    schema = _load_schema(_SCHEMA_FILES[role])
    return OutputSchema(
        name=f"{role.value}_response",
        response_type=schema["properties"]["type"]["const"],
        schema=schema,
    )


def get_role_config_schema() -> dict[str, Any]:
    """Get the role_config.json schema."""
    return _load_schema("role_config.schema.json")


def validate_payload(role: Role, payload: dict[str, Any]) -> None:
    """Validate a completion payload against the role's output schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(payload, _load_schema(_SCHEMA_FILES[role]))


def validate_against(output_schema: OutputSchema, payload: dict[str, Any]) -> None:
    """Validate a payload against an arbitrary OutputSchema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(payload, dict(output_schema.schema))


def validate_role_configs(data: dict[str, Any]) -> None:
    """Validate a role override document against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_role_config_schema())


__all__ = [
    "get_output_schema",
    "get_role_config_schema",
    "validate_payload",
    "validate_against",
    "validate_role_configs",
]
