"""
FanOutCoordinator: runs one RoleAgent per enabled role concurrently.

Branches are independent: a failure, exhaustion or timeout in one never
cancels, delays or alters another. The only cross-branch read is a role
reading the accepted output of the role it depends on, and only if that
output already exists when the dependent branch starts.
"""

import logging
import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace

from basisguard.application.agent import RoleAgent
from basisguard.application.audit import AuditEmitter
from basisguard.domain.exceptions import ConfigurationError
from basisguard.domain.models import (
    BranchFailure,
    BranchResult,
    ConversationTurn,
    FailureKind,
    RawResponse,
    RetryState,
    Role,
    SituationalParameters,
    TurnResult,
)

logger = logging.getLogger(__name__)

DEFAULT_TURN_TIMEOUT = 60.0


@dataclass(frozen=True)
class TurnRequest:
    """Inputs shared by every branch of one turn."""

    session_id: str
    history: tuple[ConversationTurn, ...]
    situation: SituationalParameters
    protocols: tuple[str, ...] = ()
    user_text: str | None = None


class CompletedBranches:
    """Write-once board of branches that already reached a terminal state.

    Thread-safe. Readers only ever see finished results.
    """

    def __init__(self) -> None:
        self._results: dict[Role, BranchResult] = {}
        self._lock = threading.Lock()

    def publish(self, result: BranchResult) -> None:
        with self._lock:
            self._results.setdefault(result.role, result)

    def accepted_response(self, role: Role) -> RawResponse | None:
        """Validated response of ``role`` if it already finished, else None."""
        with self._lock:
            result = self._results.get(role)
        return result.response if result is not None else None


class FanOutCoordinator:
    """
    Runs enabled roles' retry state machines in parallel threads.

    Owns the turn-level timeout. Branches still running when it expires are
    reported as COORDINATOR_TIMEOUT; their in-flight completion calls are
    left to finish and the late result is discarded.
    """

    def __init__(
        self,
        agents: Mapping[Role, RoleAgent],
        timeout: float = DEFAULT_TURN_TIMEOUT,
        max_workers: int | None = None,
        audit: AuditEmitter | None = None,
    ):
        """
        Args:
            agents: One agent per configured role
            timeout: Seconds the whole turn may take
            max_workers: Thread cap per turn (default: one per branch). A cap
                below the branch count queues branches behind each other, so
                it only serves deterministic ordering in tests.
            audit: Best-effort audit emitter for branch outcomes
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        self._agents = dict(agents)
        self._timeout = timeout
        self._max_workers = max_workers
        self._audit = audit or AuditEmitter()

    @property
    def timeout(self) -> float:
        return self._timeout

    def run(self, request: TurnRequest, roles: Iterable[Role]) -> TurnResult:
        """
        Fan one turn out to ``roles`` and merge the outcomes.

        Args:
            request: Shared turn inputs (immutable)
            roles: Enabled roles for this turn

        Returns:
            TurnResult holding exactly one entry per requested role

        Raises:
            ConfigurationError: If a requested role has no configured agent
        """
        requested = set(roles)
        ordered = [role for role in Role if role in requested]
        unknown = [role for role in ordered if role not in self._agents]
        if unknown:
            raise ConfigurationError(
                f"No agent configured for role(s): {', '.join(r.value for r in unknown)}"
            )
        if not ordered:
            return TurnResult(session_id=request.session_id)
        # Roles others depend on are submitted first; nobody waits on them.
        dependencies = {self._agents[role].config.depends_on for role in ordered}
        submission = sorted(ordered, key=lambda role: role not in dependencies)

        logger.info(
            "Fanning out turn (session=%s, roles=%s)",
            request.session_id,
            [r.value for r in ordered],
        )
        board = CompletedBranches()
        pool = ThreadPoolExecutor(
            max_workers=self._max_workers or len(ordered),
            thread_name_prefix="basisguard-branch",
        )
        try:
            futures: dict[Future[BranchResult], Role] = {
                pool.submit(self._run_branch, role, request, board): role
                for role in submission
            }
            done, pending = wait(futures, timeout=self._timeout)
        finally:
            # In-flight calls are allowed to finish; nothing new is queued.
            pool.shutdown(wait=False)

        results: dict[Role, BranchResult] = {}
        for future in done:
            results[futures[future]] = future.result()
        for future in pending:
            role = futures[future]
            results[role] = self._timed_out(role)
            future.add_done_callback(self._discard_late(request.session_id))

        merged = TurnResult(
            session_id=request.session_id,
            results={role: results[role] for role in ordered},
        )
        for role in ordered:
            self._audit.branch_outcome(request.session_id, merged[role])
        logger.info(
            "Turn complete (session=%s, accepted=%s, failed=%s)",
            request.session_id,
            [r.value for r in merged.accepted()],
            {r.value: f.kind.value for r, f in merged.failures().items()},
        )
        return merged

    def _run_branch(
        self, role: Role, request: TurnRequest, board: CompletedBranches
    ) -> BranchResult:
        agent = self._agents[role]
        situation = request.situation
        dependency = agent.config.depends_on
        if dependency is not None:
            prior = board.accepted_response(dependency)
            if prior is None:
                logger.debug(
                    "Role %s proceeds without %s output (session=%s)",
                    role.value,
                    dependency.value,
                    request.session_id,
                )
            situation = replace(situation, prior_analysis=prior)

        try:
            result = agent.run(
                request.session_id,
                request.history,
                situation,
                request.protocols,
                request.user_text,
            )
        except Exception as e:
            logger.exception(
                "Role %s branch crashed (session=%s)", role.value, request.session_id
            )
            result = BranchResult(
                role=role,
                failure=BranchFailure(
                    kind=FailureKind.COMPLETION_FATAL,
                    reason=f"{type(e).__name__}: {e}",
                ),
                trace=(RetryState.IDLE, RetryState.EXHAUSTED),
            )
        board.publish(result)
        return result

    def _timed_out(self, role: Role) -> BranchResult:
        reason = f"Role {role.value} did not finish within {self._timeout:g}s"
        logger.warning(reason)
        return BranchResult(
            role=role,
            failure=BranchFailure(kind=FailureKind.COORDINATOR_TIMEOUT, reason=reason),
            trace=(RetryState.IDLE, RetryState.ATTEMPTING, RetryState.EXHAUSTED),
        )

    def _discard_late(self, session_id: str):
        def callback(future: Future[BranchResult]) -> None:
            try:
                result = future.result()
            except Exception:
                logger.exception("Late branch raised (session=%s)", session_id)
                return
            logger.info(
                "Role %s finished after timeout; result discarded (session=%s)",
                result.role.value,
                session_id,
            )
            self._audit.late_branch(session_id, result)

        return callback
