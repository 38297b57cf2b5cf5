"""Shared pytest fixtures for basisguard tests."""

from typing import Any

import pytest

from basisguard.config import default_role_configs
from basisguard.domain.models import (
    ConversationTurn,
    ExerciseConfig,
    Role,
    RoleConfig,
    SituationalParameters,
    Speaker,
)
from basisguard.infrastructure.audit import InMemoryAuditLog
from basisguard.infrastructure.persistence.memory import InMemorySessionStore


def make_navigator_payload(user_prompt: str | None = None) -> dict[str, Any]:
    return {
        "type": "feedforward",
        "next_focus": "Bekräfta förälderns oro innan du går vidare",
        "micro_objective": "Ställ en öppen fråga om barnets situation",
        "guardrails": ["Lyssna aktivt", "Håll professionella gränser"],
        "user_prompt": user_prompt
        or "Inled med att spegla förälderns känslor och fråga vad som oroar mest.",
    }


def make_analyst_payload(
    feedback: str | None = None, scores: dict[str, int] | None = None
) -> dict[str, Any]:
    scores = scores or {
        "Active Listening": 3,
        "Empathy": 4,
        "Professionalism": 3,
        "Problem Resolution": 3,
    }
    return {
        "type": "iterative_feedback",
        "segment_id": "seg_001",
        "rubric": [{"field": field, "score": score} for field, score in scores.items()],
        "evidence_quotes": ["Jag förstår att du är orolig"],
        "past_only_feedback": feedback
        or "Du bekräftade förälderns oro tydligt och höll en lugn ton.",
    }


def make_reviewer_payload(summary: str | None = None) -> dict[str, Any]:
    return {
        "type": "holistic_feedback",
        "rubric_summary": [
            {"field": "Active Listening", "score": 3},
            {"field": "Empathy", "score": 4},
        ],
        "strengths": ["Konsekvent empatisk ton genom hela samtalet"],
        "growth_areas": ["Fler öppna frågor för att utforska oron"],
        "exemplar_quotes": ["Jag förstår att du är orolig för henne"],
        "summary": summary
        or (
            "Studenten visade genomgående god empati och professionalitet, "
            "med utrymme att utveckla problemlösningen."
        ),
    }


@pytest.fixture
def navigator_payload() -> dict[str, Any]:
    """Compliant navigator payload."""
    return make_navigator_payload()


@pytest.fixture
def analyst_payload() -> dict[str, Any]:
    """Compliant analyst payload."""
    return make_analyst_payload()


@pytest.fixture
def reviewer_payload() -> dict[str, Any]:
    """Compliant reviewer payload."""
    return make_reviewer_payload()


@pytest.fixture
def role_configs() -> dict[Role, RoleConfig]:
    """Built-in role configuration table."""
    return default_role_configs()


@pytest.fixture
def exercise() -> ExerciseConfig:
    """Exercise with navigator and analyst enabled (default toggles)."""
    return ExerciseConfig(
        exercise_id="demo-001",
        title="Confidentiality Discussion Training",
        focus_hint="Practice maintaining professional boundaries while showing empathy",
        case_role="Concerned Parent",
        case_background="A parent is worried about their child's academic progress",
    )


@pytest.fixture
def situation() -> SituationalParameters:
    return SituationalParameters(
        focus_hint="Practice empathy",
        case_role="Concerned Parent",
        case_background="Worried about grades",
        turn_count=1,
    )


@pytest.fixture
def history() -> tuple[ConversationTurn, ...]:
    """Short session log (welcome message plus one exchange)."""
    return (
        ConversationTurn(Speaker.SYSTEM, "Welcome to your BASIS training session."),
        ConversationTurn(Speaker.USER, "Hej, vad kan jag hjälpa till med?"),
        ConversationTurn(Speaker.ASSISTANT, "Jag är orolig för min dotters betyg."),
    )


@pytest.fixture
def session_store() -> InMemorySessionStore:
    """Create an in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    """Create an in-memory audit log."""
    return InMemoryAuditLog()
