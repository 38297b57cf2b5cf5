"""
RoleAgent: retry state machine for a single role.

Idle -> Attempting -> Validating -> (Accepted | Retrying -> Attempting ...)
ending in Accepted or Exhausted. One RoleAgent serves every turn; all
per-run state lives in local variables.
"""

import logging
from collections.abc import Sequence

from basisguard.application.action_pair import ActionPair
from basisguard.application.audit import AuditEmitter
from basisguard.domain.exceptions import MissingInput
from basisguard.domain.interfaces import CompletionClientInterface, GuardInterface
from basisguard.domain.models import (
    BranchFailure,
    BranchResult,
    ConversationTurn,
    FailureKind,
    Fatal,
    PromptPayload,
    RawResponse,
    RequestContext,
    RetryState,
    Role,
    RoleConfig,
    SituationalParameters,
    Success,
    Violation,
)
from basisguard.domain.prompts import ContextComposer

logger = logging.getLogger(__name__)


class RoleAgent:
    """
    Stateless executor of the generate-validate-retry loop for one role.

    The context is composed once and reused verbatim on every attempt; only
    the role's sampling temperature can make completions differ.
    """

    def __init__(
        self,
        config: RoleConfig,
        client: CompletionClientInterface,
        guard: GuardInterface,
        composer: ContextComposer | None = None,
        audit: AuditEmitter | None = None,
    ):
        """
        Args:
            config: Role configuration, including max_attempts
            client: Completion boundary
            guard: Validator for produced responses
            composer: Context composer (default history window if None)
            audit: Best-effort audit emitter
        """
        self._config = config
        self._composer = composer or ContextComposer()
        self._action_pair = ActionPair(config, client, guard, audit)

    @property
    def role(self) -> Role:
        return self._config.role

    @property
    def config(self) -> RoleConfig:
        return self._config

    def run(
        self,
        session_id: str,
        history: Sequence[ConversationTurn],
        situation: SituationalParameters,
        protocols: Sequence[str] = (),
        user_text: str | None = None,
    ) -> BranchResult:
        """
        Compose the request and drive it to a terminal state.

        Returns:
            BranchResult that is either accepted or carries a typed failure
        """
        try:
            context, prompt = self._composer.compose(
                self._config, session_id, history, situation, protocols, user_text
            )
        except MissingInput as e:
            logger.warning("Role %s skipped (session=%s): %s", self.role.value, session_id, e)
            return BranchResult(
                role=self.role,
                failure=BranchFailure(kind=FailureKind.MISSING_INPUT, reason=str(e)),
                trace=(RetryState.IDLE, RetryState.EXHAUSTED),
            )
        return self.execute(context, prompt)

    def execute(self, context: RequestContext, prompt: PromptPayload) -> BranchResult:
        """
        Run attempts until one is accepted or the attempt budget is spent.

        Args:
            context: Composed request context
            prompt: Prompt payload rendered from ``context``

        Returns:
            BranchResult (never raises for boundary or guardrail failures)
        """
        max_attempts = self._config.max_attempts
        trace: list[RetryState] = [RetryState.IDLE]
        history: list[Violation] = []
        last_response: RawResponse | None = None
        last_error = ""

        for attempt in range(1, max_attempts + 1):
            trace.append(RetryState.ATTEMPTING)
            outcome = self._action_pair.execute(prompt, context, attempt)

            if isinstance(outcome, Success):
                trace += [RetryState.VALIDATING, RetryState.ACCEPTED]
                logger.info(
                    "Role %s generated valid response (session=%s, attempts=%d, type=%s)",
                    self.role.value,
                    context.session_id,
                    attempt,
                    outcome.response.response_type,
                )
                return BranchResult(
                    role=self.role,
                    response=outcome.response,
                    attempts=attempt,
                    trace=tuple(trace),
                )

            if isinstance(outcome, Fatal):
                trace.append(RetryState.EXHAUSTED)
                logger.error(
                    "Role %s completion failed (session=%s, attempt %d/%d): %s",
                    self.role.value,
                    context.session_id,
                    attempt,
                    max_attempts,
                    outcome.error,
                )
                return BranchResult(
                    role=self.role,
                    failure=BranchFailure(
                        kind=FailureKind.COMPLETION_FATAL,
                        reason=outcome.error,
                        last_response=last_response,
                        violations=tuple(history),
                        attempts=attempt,
                    ),
                    attempts=attempt,
                    trace=tuple(trace),
                )

            # Retryable from here: violating payload or transient boundary error.
            if outcome.response is not None:
                trace.append(RetryState.VALIDATING)
                last_response = outcome.response
                history.extend(outcome.violations)
            else:
                last_error = outcome.error

            if attempt < max_attempts:
                trace.append(RetryState.RETRYING)
                logger.warning(
                    "Role %s %s, retrying (attempt %d/%d, session=%s): %s",
                    self.role.value,
                    "guardrail violation" if outcome.violations else "transient error",
                    attempt,
                    max_attempts,
                    context.session_id,
                    [list(v.matches) for v in outcome.violations] or outcome.error,
                )

        trace.append(RetryState.EXHAUSTED)
        return BranchResult(
            role=self.role,
            failure=self._exhausted(last_response, history, last_error),
            attempts=max_attempts,
            trace=tuple(trace),
        )

    def _exhausted(
        self,
        last_response: RawResponse | None,
        history: list[Violation],
        last_error: str,
    ) -> BranchFailure:
        max_attempts = self._config.max_attempts
        if last_response is not None:
            matched = "; ".join(", ".join(v.matches) for v in history)
            reason = (
                f"Role {self.role.value} violated guardrails after "
                f"{max_attempts} attempts: {matched}"
            )
            kind = FailureKind.GUARDRAIL_EXHAUSTED
        else:
            reason = (
                f"Role {self.role.value} failed after {max_attempts} attempts: "
                f"{last_error}"
            )
            kind = FailureKind.COMPLETION_TRANSIENT
        logger.error(reason)
        return BranchFailure(
            kind=kind,
            reason=reason,
            last_response=last_response,
            violations=tuple(history),
            attempts=max_attempts,
        )
