"""
Temporal-direction guard.

Scans every decoded string of the response (keys and values, one per line)
for the role's forbidden patterns. Every rule is evaluated; matches are
collected, never short-circuited, so the audit trail shows every rule a
response broke.
"""

from collections.abc import Sequence

from basisguard.domain.guardrails import (
    CONSTRAINT_DESCRIPTIONS,
    DEFAULT_RULES,
    RuleTable,
)
from basisguard.domain.interfaces import GuardInterface
from basisguard.domain.models import RawResponse, Role, Violation


class TemporalGuard(GuardInterface):
    """
    Guardrail validator for temporal-direction policy.

    Pure: the same role and response always yield the same violations.
    """

    def __init__(self, rules: RuleTable | None = None):
        """
        Args:
            rules: Forbidden-pattern table keyed by role (default: built-in table)
        """
        self._rules = rules if rules is not None else DEFAULT_RULES

    @property
    def rules(self) -> RuleTable:
        return self._rules

    def check_text(self, role: Role, text: str) -> tuple[Violation, ...]:
        """Return every rule of ``role`` that matches ``text``."""
        violations = []
        for rule in self._rules.get(role, ()):
            matches = rule.find(text)
            if matches:
                violations.append(
                    Violation(
                        role=role,
                        rule_id=rule.rule_id,
                        matches=matches,
                        pattern=rule.pattern,
                    )
                )
        return tuple(violations)

    def validate(self, role: Role, response: RawResponse) -> tuple[Violation, ...]:
        """
        Validate a response against the role's temporal policy.

        Args:
            role: Role that produced the response
            response: Response to check

        Returns:
            Violations found (empty tuple means compliant)
        """
        return self.check_text(role, "\n".join(response.strings()))

    def has_violations(self, role: Role, text: str) -> bool:
        return bool(self.check_text(role, text))


def violation_messages(violations: Sequence[Violation]) -> list[str]:
    """Human-readable message per violation."""
    messages = []
    for v in violations:
        agent_name = v.role.value.capitalize()
        matched = ", ".join(v.matches)
        constraint = CONSTRAINT_DESCRIPTIONS.get(v.role, "temporal constraint")
        messages.append(f'{agent_name} agent violated {constraint}: "{matched}"')
    return messages
