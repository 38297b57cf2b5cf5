"""
Context composition for role requests.

This module provides:
- ContextComposer: builds a bounded RequestContext and the literal prompt
  payload from session history, role config and situational parameters
- Situational directives: one pure function per role
- parse_transcript: turns a free-text transcript into conversation turns

Composition is a pure function of its inputs. Retries reuse the composed
payload verbatim.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from basisguard.domain.exceptions import MissingInput
from basisguard.domain.models import (
    ConversationTurn,
    PromptPayload,
    RequestContext,
    Role,
    RoleConfig,
    SituationalParameters,
    Speaker,
)
from basisguard.domain.roles import BASIS_RUBRIC_FIELDS, LOW_SCORE_THRESHOLD

DEFAULT_HISTORY_WINDOW = 10

NO_PRIOR_ANALYSIS = "No prior analysis is available for this turn."

JSON_ONLY_INSTRUCTION = (
    "VIKTIGT: Svara ENDAST med valid JSON enligt schema. "
    "Inga extra kommentarer eller text utanför JSON."
)


# =============================================================================
# SITUATIONAL DIRECTIVES
# =============================================================================


def _analyst_directive(situation: SituationalParameters, user_text: str | None) -> str:
    return (
        f'Analyze the student\'s response: "{user_text}". '
        "Focus ONLY on what just happened. No future recommendations."
    )


def low_score_fields(situation: SituationalParameters) -> tuple[str, ...]:
    """Rubric fields scored below the threshold in the prior analysis."""
    if situation.prior_analysis is None:
        return ()
    rubric = situation.prior_analysis.payload.get("rubric") or ()
    return tuple(
        item["field"]
        for item in rubric
        if isinstance(item.get("score"), int) and item["score"] < LOW_SCORE_THRESHOLD
    )


def _navigator_directive(
    situation: SituationalParameters, user_text: str | None
) -> str:
    if situation.turn_count == 0:
        return (
            "The student is about to begin their first interaction. "
            "Provide proactive guidance to help them start effectively."
        )
    directive = (
        f"The student has completed {situation.turn_count} interaction(s). "
        "Provide guidance for their next response."
    )
    if situation.prior_analysis is None:
        return f"{directive} {NO_PRIOR_ANALYSIS}"
    weak = low_score_fields(situation)
    if weak:
        directive += f" Focus on improving: {', '.join(weak)}."
    return directive


def _reviewer_directive(
    situation: SituationalParameters, user_text: str | None
) -> str:
    return (
        "Provide a comprehensive summary of the entire training session. "
        "Focus on overall patterns, growth demonstrated, and key development "
        "areas across all interactions."
    )


DirectiveBuilder = Callable[[SituationalParameters, str | None], str]

DIRECTIVES: dict[Role, DirectiveBuilder] = {
    Role.NAVIGATOR: _navigator_directive,
    Role.ANALYST: _analyst_directive,
    Role.REVIEWER: _reviewer_directive,
}


# =============================================================================
# COMPOSER
# =============================================================================


@dataclass(frozen=True)
class ContextComposer:
    """Deterministic builder of role requests.

    Truncates history to the most recent ``history_window`` turns (oldest
    dropped first, order kept) and places the role's situational directive
    after history and before the new user text.
    """

    history_window: int = DEFAULT_HISTORY_WINDOW

    def __post_init__(self) -> None:
        if self.history_window < 0:
            raise ValueError(
                f"history_window must be >= 0, got {self.history_window}"
            )

    def build_context(
        self,
        config: RoleConfig,
        session_id: str,
        history: Sequence[ConversationTurn],
        situation: SituationalParameters,
        protocols: Sequence[str] = (),
        user_text: str | None = None,
    ) -> RequestContext:
        """
        Build the immutable request context for one branch.

        Args:
            config: Role configuration
            session_id: Owning session
            history: Session conversation log, oldest first, without the new turn
            situation: Role-specific situational parameters
            protocols: Active protocol identifiers
            user_text: New user text for this turn, if any

        Returns:
            RequestContext with a bounded history window

        Raises:
            MissingInput: If the role requires user text and none was given
        """
        if user_text is not None and not user_text.strip():
            user_text = None
        if config.requires_user_text and user_text is None:
            raise MissingInput(config.role)

        window = tuple(history)[-self.history_window :] if self.history_window else ()
        directive = DIRECTIVES[config.role](situation, user_text)
        return RequestContext(
            session_id=session_id,
            role=config.role,
            protocols=tuple(protocols),
            history=window,
            situation=situation,
            directive=directive,
            user_text=user_text,
        )

    def render(self, config: RoleConfig, context: RequestContext) -> PromptPayload:
        """Render the literal prompt payload for a composed context."""
        turns = [ConversationTurn(Speaker.SYSTEM, self._system_message(config, context))]
        turns.extend(context.history)
        turns.append(ConversationTurn(Speaker.SYSTEM, context.directive))
        if context.user_text is not None:
            turns.append(ConversationTurn(Speaker.USER, context.user_text))
        return tuple(turns)

    def compose(
        self,
        config: RoleConfig,
        session_id: str,
        history: Sequence[ConversationTurn],
        situation: SituationalParameters,
        protocols: Sequence[str] = (),
        user_text: str | None = None,
    ) -> tuple[RequestContext, PromptPayload]:
        """Build the context and render its prompt payload in one step."""
        context = self.build_context(
            config, session_id, history, situation, protocols, user_text
        )
        return context, self.render(config, context)

    def _system_message(self, config: RoleConfig, context: RequestContext) -> str:
        return (
            f"{config.prompt_template}\n\n"
            f"PROTOKOLL-KONTEXT:\n{self._protocol_context(context.protocols)}\n\n"
            f"ÖVNINGS-KONTEXT:\n{self._exercise_context(context.situation)}\n\n"
            f"{JSON_ONLY_INSTRUCTION}"
        )

    @staticmethod
    def _protocol_context(protocols: Sequence[str]) -> str:
        fields = "\n".join(f"- {field}" for field in BASIS_RUBRIC_FIELDS)
        return (
            f"Aktiva protokoll: {', '.join(protocols)}\n\n"
            f"RUBRIC-FÄLT (BASIS):\n{fields}\n\n"
            "Använd EXAKT dessa fältnamn i dina rubric-bedömningar."
        )

    @staticmethod
    def _exercise_context(situation: SituationalParameters) -> str:
        return (
            f"ÖVNINGSFOKUS: {situation.focus_hint}\n\n"
            "ROLLSPELS-SCENARIO:\n"
            f"- Roll: {situation.case_role}\n"
            f"- Bakgrund: {situation.case_background}\n\n"
            "Anpassa din feedback till denna specifika övningskontext."
        )


# =============================================================================
# TRANSCRIPTS
# =============================================================================

_USER_PREFIX = re.compile(r"^(student|trainee|you):\s*", re.IGNORECASE)
_ASSISTANT_PREFIX = re.compile(r"^(parent|client|role):\s*", re.IGNORECASE)

TRANSCRIPT_PREAMBLE = (
    "Transcript analysis - reviewing complete conversation for holistic assessment."
)


def parse_transcript(transcript: str) -> tuple[ConversationTurn, ...]:
    """
    Parse a free-text transcript into conversation turns.

    Lines prefixed student/trainee/you become user turns, parent/client/role
    become assistant turns; anything else defaults to a user turn.
    """
    turns = [ConversationTurn(Speaker.SYSTEM, TRANSCRIPT_PREAMBLE)]
    for line in transcript.splitlines():
        line = line.strip()
        if not line:
            continue
        if _USER_PREFIX.match(line):
            turns.append(ConversationTurn(Speaker.USER, _USER_PREFIX.sub("", line)))
        elif _ASSISTANT_PREFIX.match(line):
            turns.append(
                ConversationTurn(Speaker.ASSISTANT, _ASSISTANT_PREFIX.sub("", line))
            )
        else:
            turns.append(ConversationTurn(Speaker.USER, line))
    return tuple(turns)
