"""
TurnProcessor: inbound entry point for one user turn.

Looks up the session, appends the new user turn exactly once, then fans
the turn out to the enabled roles. Everything that can go wrong after the
session lookup is recovered into the returned TurnResult.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from basisguard.application.agent import RoleAgent
from basisguard.application.audit import AuditEmitter, QueuedAuditSink
from basisguard.application.coordinator import FanOutCoordinator, TurnRequest
from basisguard.config import PipelineConfig
from basisguard.domain.exceptions import ConfigurationError
from basisguard.domain.interfaces import (
    AuditSinkInterface,
    CompletionClientInterface,
    GuardInterface,
    SessionStoreInterface,
)
from basisguard.domain.models import (
    BranchResult,
    ConversationTurn,
    ExerciseConfig,
    Role,
    RoleConfig,
    SituationalParameters,
    Speaker,
    TurnResult,
)
from basisguard.domain.prompts import ContextComposer, parse_transcript
from basisguard.guards import TemporalGuard

logger = logging.getLogger(__name__)

TRANSCRIPT_SESSION_ID = "transcript_analysis"


class TurnProcessor:
    """
    Processes user turns for stored sessions.

    Holds one RoleAgent per configured role and one FanOutCoordinator.
    Session history is the only shared mutable state and is written here
    alone, before any branch starts.
    """

    def __init__(
        self,
        sessions: SessionStoreInterface,
        client: CompletionClientInterface,
        role_configs: Mapping[Role, RoleConfig],
        config: PipelineConfig | None = None,
        guard: GuardInterface | None = None,
        audit_sink: AuditSinkInterface | None = None,
        queue_audit: bool = True,
    ):
        """
        Args:
            sessions: Session storage collaborator
            client: Completion boundary shared by all roles
            role_configs: RoleConfig per role
            config: Pipeline settings (windows, timeout)
            guard: Guardrail validator (default: TemporalGuard with built-in rules)
            audit_sink: Audit collaborator (None disables audit)
            queue_audit: Forward audit events from a background thread so
                sink I/O never runs on a branch thread
        """
        self._sessions = sessions
        self._config = config or PipelineConfig()
        guard = guard or TemporalGuard()
        if (
            queue_audit
            and audit_sink is not None
            and not isinstance(audit_sink, QueuedAuditSink)
        ):
            audit_sink = QueuedAuditSink(audit_sink)
        self._audit_sink = audit_sink
        audit = AuditEmitter(audit_sink)
        self._agents = {
            role: RoleAgent(
                role_config,
                client,
                guard,
                composer=ContextComposer(self._config.window_for(role)),
                audit=audit,
            )
            for role, role_config in role_configs.items()
        }
        self._coordinator = FanOutCoordinator(
            self._agents,
            timeout=self._config.turn_timeout,
            audit=audit,
        )

    def flush_audit(self) -> None:
        """Block until queued audit events have reached the sink."""
        if isinstance(self._audit_sink, QueuedAuditSink):
            self._audit_sink.flush()

    def close(self) -> None:
        """Forward pending audit events and stop the audit worker."""
        if isinstance(self._audit_sink, QueuedAuditSink):
            self._audit_sink.close()

    def process_turn(
        self,
        session_id: str,
        user_text: str,
        enabled_roles: Iterable[Role] | None = None,
    ) -> TurnResult:
        """
        Process one user turn.

        Args:
            session_id: Session the turn belongs to
            user_text: New student text
            enabled_roles: Roles to run (default: the session's toggles)

        Returns:
            TurnResult with one entry per enabled role

        Raises:
            SessionNotFound: If the session is unknown or expired
            ConfigurationError: If an enabled role has no configured agent
        """
        exercise = self._sessions.exercise(session_id)
        history = self._sessions.history(session_id)
        roles = (
            frozenset(enabled_roles)
            if enabled_roles is not None
            else exercise.enabled_roles
        )
        unknown = sorted(r.value for r in roles if r not in self._agents)
        if unknown:
            raise ConfigurationError(
                f"No agent configured for role(s): {', '.join(unknown)}"
            )
        text = user_text.strip() if user_text else ""

        if text:
            self._sessions.append_turn(session_id, ConversationTurn(Speaker.USER, text))

        turn_count = sum(1 for t in history if t.speaker is Speaker.USER)
        if text:
            turn_count += 1

        logger.info(
            "Processing turn (session=%s, turn=%d, roles=%s)",
            session_id,
            turn_count,
            sorted(r.value for r in roles),
        )
        request = TurnRequest(
            session_id=session_id,
            history=history,
            situation=self._situation(exercise, turn_count),
            protocols=exercise.protocols,
            user_text=text or None,
        )
        return self._coordinator.run(request, roles)

    def initial_guidance(self, session_id: str) -> BranchResult:
        """
        Navigator guidance before the student's first turn.

        Raises:
            SessionNotFound: If the session is unknown or expired
        """
        exercise = self._sessions.exercise(session_id)
        request = TurnRequest(
            session_id=session_id,
            history=self._sessions.history(session_id),
            situation=self._situation(exercise, turn_count=0),
            protocols=exercise.protocols,
        )
        return self._coordinator.run(request, [Role.NAVIGATOR])[Role.NAVIGATOR]

    def summarize_session(self, session_id: str) -> BranchResult:
        """
        Reviewer summary over the whole session.

        Raises:
            SessionNotFound: If the session is unknown or expired
        """
        exercise = self._sessions.exercise(session_id)
        history = self._sessions.history(session_id)
        request = TurnRequest(
            session_id=session_id,
            history=history,
            situation=self._situation(
                exercise,
                turn_count=sum(1 for t in history if t.speaker is Speaker.USER),
            ),
            protocols=exercise.protocols,
        )
        return self._coordinator.run(request, [Role.REVIEWER])[Role.REVIEWER]

    def review_transcript(
        self,
        transcript: str,
        protocols: Sequence[str] = ("basis-v1",),
        focus_hint: str | None = None,
    ) -> BranchResult:
        """Reviewer assessment of a free-text transcript."""
        history = parse_transcript(transcript)
        situation = SituationalParameters(
            focus_hint=focus_hint or "Comprehensive conversation analysis",
            case_role="Various roles",
            case_background="Complete conversation transcript analysis",
            turn_count=sum(1 for t in history if t.speaker is Speaker.USER),
        )
        request = TurnRequest(
            session_id=TRANSCRIPT_SESSION_ID,
            history=history,
            situation=situation,
            protocols=tuple(protocols),
        )
        return self._coordinator.run(request, [Role.REVIEWER])[Role.REVIEWER]

    @staticmethod
    def _situation(exercise: ExerciseConfig, turn_count: int) -> SituationalParameters:
        return SituationalParameters(
            focus_hint=exercise.focus_hint,
            case_role=exercise.case_role,
            case_background=exercise.case_background,
            turn_count=turn_count,
        )
