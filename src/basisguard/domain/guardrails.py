"""
Temporal-direction guardrail rule set.

Static forbidden-pattern tables keyed by Role:
- navigator gives feedforward only, so retrospective language is forbidden
- analyst gives retrospective feedback only, so forward instructions are forbidden
- reviewer summarises the whole conversation, so segment-level language is forbidden

Patterns are matched case-insensitively against the decoded response strings.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from basisguard.domain.models import Role


@dataclass(frozen=True)
class GuardrailRule:
    """One forbidden lexical pattern for a role."""

    rule_id: str
    pattern: str
    description: str = ""
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_compiled", re.compile(self.pattern, re.IGNORECASE | re.UNICODE)
        )

    def find(self, text: str) -> tuple[str, ...]:
        """Distinct matched substrings, in order of first appearance."""
        return tuple(dict.fromkeys(m.group(0) for m in self._compiled.finditer(text)))

    @classmethod
    def literal(cls, rule_id: str, phrase: str) -> "GuardrailRule":
        """Rule matching a literal phrase on word boundaries."""
        return cls(rule_id=rule_id, pattern=rf"\b{re.escape(phrase)}\b")


RuleTable = Mapping[Role, tuple[GuardrailRule, ...]]


NAVIGATOR_RULES: tuple[GuardrailRule, ...] = (
    GuardrailRule(
        rule_id="navigator.retrospective.sv",
        pattern=r"\b(nyligen|precis|nyss|du gjorde|tidigare svar|det som hände|i ditt förra)\b",
        description="Swedish retrospective phrasing",
    ),
    GuardrailRule(
        rule_id="navigator.retrospective.en",
        pattern=r"\b(you just|previously|earlier|what happened|your last)\b",
        description="English retrospective phrasing",
    ),
    GuardrailRule(
        rule_id="navigator.reply_assessment",
        pattern=r"\b(analys av|feedback på|bedömning av) .*(replik|svar|yttrande)\b",
        description="Assessment of an earlier reply",
    ),
)

ANALYST_RULES: tuple[GuardrailRule, ...] = (
    GuardrailRule(
        rule_id="analyst.feedforward.sv",
        pattern=r"\b(nästa gång|framöver|bör du nu|kommande steg|fortsätt med|nästa)\b",
        description="Swedish forward-looking phrasing",
    ),
    GuardrailRule(
        rule_id="analyst.feedforward.en",
        pattern=r"\b(next time|going forward|you should now|upcoming|continue to)\b",
        description="English forward-looking phrasing",
    ),
    GuardrailRule(
        rule_id="analyst.future_planning",
        pattern=r"\b(i framtiden|kommande|planera för|förbered dig)\b",
        description="Planning for future situations",
    ),
)

REVIEWER_RULES: tuple[GuardrailRule, ...] = (
    GuardrailRule(
        rule_id="reviewer.segment_id",
        pattern=r"\bsegment_id\b",
        description="Segment identifiers",
    ),
    GuardrailRule(
        rule_id="reviewer.segment.sv",
        pattern=r"\b(i replik|efter replik|denna specifika|just nu)\b",
        description="Swedish reply-level phrasing",
    ),
    GuardrailRule(
        rule_id="reviewer.segment.en",
        pattern=r"\b(this specific response|in this reply|right now)\b",
        description="English reply-level phrasing",
    ),
)

DEFAULT_RULES: RuleTable = {
    Role.NAVIGATOR: NAVIGATOR_RULES,
    Role.ANALYST: ANALYST_RULES,
    Role.REVIEWER: REVIEWER_RULES,
}

# Constraint each role breaks when one of its rules matches.
CONSTRAINT_DESCRIPTIONS: Mapping[Role, str] = {
    Role.NAVIGATOR: "feedforward constraint by using retrospective language",
    Role.ANALYST: "retrospective constraint by using forward-looking language",
    Role.REVIEWER: "holistic constraint by using segment-specific language",
}
