"""
ActionPair: one complete-then-validate attempt for a role.

Couples the completion client with the guard so that every payload the
client returns is validated before anyone sees it.
"""

import logging
from dataclasses import replace

from basisguard.application.audit import AuditEmitter
from basisguard.domain.exceptions import CompletionError
from basisguard.domain.interfaces import CompletionClientInterface, GuardInterface
from basisguard.domain.models import (
    AttemptOutcome,
    Fatal,
    PromptPayload,
    RequestContext,
    Retryable,
    RoleConfig,
    Success,
)

logger = logging.getLogger(__name__)


class ActionPair:
    """
    Atomic completion-validation transaction for one role.

    Classifies each attempt as Success, Retryable or Fatal. Never raises
    for boundary errors; they become outcomes.
    """

    def __init__(
        self,
        config: RoleConfig,
        client: CompletionClientInterface,
        guard: GuardInterface,
        audit: AuditEmitter | None = None,
    ):
        """
        Args:
            config: Role configuration (schema, sampling parameters)
            client: Completion boundary
            guard: Validator for produced responses
            audit: Best-effort audit emitter for violations
        """
        self._config = config
        self._client = client
        self._guard = guard
        self._audit = audit or AuditEmitter()

    @property
    def config(self) -> RoleConfig:
        """Access the role config (read-only)."""
        return self._config

    @property
    def guard(self) -> GuardInterface:
        """Access the guard (read-only)."""
        return self._guard

    def execute(
        self, prompt: PromptPayload, context: RequestContext, attempt: int
    ) -> AttemptOutcome:
        """
        Run one attempt.

        Args:
            prompt: Composed prompt payload (reused verbatim across attempts)
            context: Request context the prompt was rendered from
            attempt: 1-based attempt number

        Returns:
            Success, Retryable (violations or transient error) or Fatal
        """
        role = self._config.role
        schema = self._config.output_schema
        try:
            response = self._client.complete(
                prompt,
                schema,
                self._config.temperature,
                self._config.max_output_tokens,
            )
        except CompletionError as e:
            logger.warning(
                "Completion %s for role=%s session=%s (attempt %d): %s",
                "transient error" if e.retryable else "failed",
                role.value,
                context.session_id,
                attempt,
                e,
            )
            if e.retryable:
                return Retryable(error=str(e))
            return Fatal(error=str(e))

        if response.response_type != schema.response_type:
            return Fatal(
                error=(
                    f"Role {role.value} returned response type "
                    f"'{response.response_type}', expected '{schema.response_type}'"
                )
            )

        response = replace(response, attempt=attempt)
        logger.debug(
            "Role %s raw output before guardrails (session=%s): %s",
            role.value,
            context.session_id,
            response.to_text(),
        )

        violations = self._guard.validate(role, response)
        if violations:
            self._audit.violations(context.session_id, role, attempt, violations)
            return Retryable(violations=violations, response=response)
        return Success(response=response)
