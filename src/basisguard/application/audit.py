"""Audit event emission service."""

import logging
import queue
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from basisguard.domain.audit import AuditEvent, AuditEventType
from basisguard.domain.interfaces import AuditSinkInterface
from basisguard.domain.models import BranchResult, Role, Violation

logger = logging.getLogger(__name__)


class AuditEmitter:
    """Emits audit events to a sink, best-effort.

    A failing sink is logged and otherwise ignored: audit problems never
    change a branch's or a turn's outcome.
    """

    def __init__(self, sink: AuditSinkInterface | None = None) -> None:
        self._sink = sink

    def _emit(self, event: AuditEvent) -> None:
        if self._sink is None:
            return
        try:
            self._sink.record(event)
        except Exception:
            logger.warning(
                "Audit sink failed for %s (session=%s, role=%s)",
                event.event_type.value,
                event.session_id,
                event.role,
                exc_info=True,
            )

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def violations(
        self,
        session_id: str,
        role: Role,
        attempt: int,
        violations: tuple[Violation, ...],
    ) -> None:
        """Emit GUARDRAIL_VIOLATION when a response broke role rules."""
        if not violations:
            return
        self._emit(
            AuditEvent(
                event_id=str(uuid.uuid4()),
                event_type=AuditEventType.GUARDRAIL_VIOLATION,
                session_id=session_id,
                role=role.value,
                attempt=attempt,
                violations=violations,
                summary="; ".join(", ".join(v.matches) for v in violations)[:500],
                created_at=self._now(),
            )
        )

    def branch_outcome(self, session_id: str, result: BranchResult) -> None:
        """Emit BRANCH_OUTCOME once a branch reached a terminal state."""
        failure = result.failure
        self._emit(
            AuditEvent(
                event_id=str(uuid.uuid4()),
                event_type=AuditEventType.BRANCH_OUTCOME,
                session_id=session_id,
                role=result.role.value,
                attempt=result.attempts,
                violations=failure.violations if failure else (),
                status="accepted" if failure is None else failure.kind.value,
                summary=failure.reason[:500] if failure else "",
                created_at=self._now(),
            )
        )

    def late_branch(self, session_id: str, result: BranchResult) -> None:
        """Emit LATE_BRANCH_DISCARDED when a timed-out branch finishes."""
        self._emit(
            AuditEvent(
                event_id=str(uuid.uuid4()),
                event_type=AuditEventType.LATE_BRANCH_DISCARDED,
                session_id=session_id,
                role=result.role.value,
                attempt=result.attempts,
                status="accepted" if result.accepted else "failed",
                summary="Branch finished after the turn timeout; result discarded",
                created_at=self._now(),
            )
        )


class QueuedAuditSink(AuditSinkInterface):
    """
    Non-blocking wrapper: record() enqueues, a daemon thread forwards.

    Errors raised by the wrapped sink are logged on the worker thread and
    never reach the caller.
    """

    _STOP = object()

    def __init__(self, sink: AuditSinkInterface, maxsize: int = 0) -> None:
        self._sink = sink
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=maxsize)
        self._worker = threading.Thread(
            target=self._drain, name="basisguard-audit", daemon=True
        )
        self._worker.start()

    def record(self, event: AuditEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(
                "Audit queue full; dropping %s (session=%s)",
                event.event_type.value,
                event.session_id,
            )

    def flush(self) -> None:
        """Block until every queued event has been forwarded."""
        self._queue.join()

    def close(self) -> None:
        """Forward what is queued, then stop the worker."""
        self._queue.put(self._STOP)
        self._worker.join()

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                self._sink.record(item)
            except Exception:
                logger.warning("Queued audit sink failed", exc_info=True)
            finally:
                self._queue.task_done()
