"""Configuration loading for the agent response pipeline."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema

from basisguard.domain.exceptions import ConfigurationError
from basisguard.domain.models import Role, RoleConfig
from basisguard.domain.prompts import DEFAULT_HISTORY_WINDOW
from basisguard.domain.roles import ROLE_DEFAULTS
from basisguard.schemas import get_output_schema, validate_role_configs

DEFAULT_TURN_TIMEOUT = 60.0
DEFAULT_REVIEW_HISTORY_WINDOW = 200


@dataclass
class PipelineConfig:
    """Configuration for the turn pipeline.

    This typed config ensures unknown fields are rejected at construction time.
    """

    history_window: int = DEFAULT_HISTORY_WINDOW
    review_history_window: int = DEFAULT_REVIEW_HISTORY_WINDOW
    turn_timeout: float = DEFAULT_TURN_TIMEOUT

    def __post_init__(self) -> None:
        if self.history_window < 0 or self.review_history_window < 0:
            raise ConfigurationError("History windows must be >= 0")
        if self.turn_timeout <= 0:
            raise ConfigurationError(
                f"turn_timeout must be > 0, got {self.turn_timeout}"
            )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> PipelineConfig:
        """
        Build config from environment variables.

        Reads BASIS_HISTORY_WINDOW, BASIS_REVIEW_HISTORY_WINDOW
        and BASIS_TURN_TIMEOUT; unset variables keep defaults.

        Raises:
            ConfigurationError: If a variable is not a valid number
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}
        for name, field_name, cast in (
            ("BASIS_HISTORY_WINDOW", "history_window", int),
            ("BASIS_REVIEW_HISTORY_WINDOW", "review_history_window", int),
            ("BASIS_TURN_TIMEOUT", "turn_timeout", float),
        ):
            raw = env.get(name)
            if raw is None or raw == "":
                continue
            try:
                kwargs[field_name] = cast(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid {name}={raw!r}: {e}") from e
        return cls(**kwargs)

    def window_for(self, role: Role) -> int:
        """History window cap for a role."""
        if role is Role.REVIEWER:
            return self.review_history_window
        return self.history_window


def default_role_configs() -> dict[Role, RoleConfig]:
    """Build the built-in RoleConfig table, one entry per role."""
    configs = {}
    for role, defaults in ROLE_DEFAULTS.items():
        configs[role] = RoleConfig(
            role=role,
            prompt_template=defaults.system_prompt,
            output_schema=get_output_schema(role),
            temperature=defaults.temperature,
            max_output_tokens=defaults.max_tokens,
            max_attempts=defaults.max_attempts,
            requires_user_text=defaults.requires_user_text,
            depends_on=defaults.depends_on,
        )
    return configs


def apply_role_overrides(
    configs: dict[Role, RoleConfig], overrides: dict[str, Any]
) -> dict[Role, RoleConfig]:
    """
    Merge override values onto a RoleConfig table.

    Args:
        configs: Base configs
        overrides: Mapping role name -> {system_prompt, temperature, max_tokens, max_attempts}

    Returns:
        New table; ``configs`` is left untouched

    Raises:
        ConfigurationError: If overrides do not match the role config schema
    """
    try:
        validate_role_configs(overrides)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Invalid role configuration: {e.message}") from e

    merged = dict(configs)
    field_map = {
        "system_prompt": "prompt_template",
        "temperature": "temperature",
        "max_tokens": "max_output_tokens",
        "max_attempts": "max_attempts",
    }
    for role_name, values in overrides.items():
        role = Role(role_name)
        changes = {field_map[key]: value for key, value in values.items()}
        try:
            merged[role] = replace(merged[role], **changes)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    return merged


def load_role_configs(path: Path | None = None) -> dict[Role, RoleConfig]:
    """
    Load role configs, applying overrides from a JSON file if given.

    Args:
        path: Path to a role override file (None for built-in defaults)

    Returns:
        Dict mapping every Role to its RoleConfig

    Raises:
        ConfigurationError: If file is missing or invalid
    """
    configs = default_role_configs()
    if path is None:
        return configs

    if not path.exists():
        raise ConfigurationError(f"Role config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")

    return apply_role_overrides(configs, data)
