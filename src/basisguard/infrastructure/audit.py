"""Audit sink implementations."""

import json
import logging
import threading
from pathlib import Path
from typing import Any

from basisguard.domain.audit import AuditEvent, AuditEventType
from basisguard.domain.interfaces import AuditSinkInterface
from basisguard.domain.models import Role, Violation

logger = logging.getLogger(__name__)


class LoggingAuditSink(AuditSinkInterface):
    """Writes every event to the ``basisguard.audit`` logger."""

    def __init__(self, logger_name: str = "basisguard.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    def record(self, event: AuditEvent) -> None:
        level = (
            logging.WARNING
            if event.event_type is AuditEventType.GUARDRAIL_VIOLATION
            else logging.INFO
        )
        self._logger.log(
            level,
            "%s session=%s role=%s attempt=%s status=%s %s",
            event.event_type.value,
            event.session_id,
            event.role,
            event.attempt,
            event.status,
            event.summary,
        )


class InMemoryAuditLog(AuditSinkInterface):
    """In-memory implementation for testing."""

    def __init__(self) -> None:
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def record(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def get_events(
        self,
        session_id: str | None = None,
        event_type: AuditEventType | None = None,
        role: str | None = None,
    ) -> list[AuditEvent]:
        with self._lock:
            events = list(self._events)
        return [
            e
            for e in events
            if (session_id is None or e.session_id == session_id)
            and (event_type is None or e.event_type == event_type)
            and (role is None or e.role == role)
        ]


class JsonlAuditLog(AuditSinkInterface):
    """Filesystem implementation storing one JSONL file per session."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.events_dir = base_path / "audit"
        self.events_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _get_session_file(self, session_id: str) -> Path:
        return self.events_dir / f"{session_id}.jsonl"

    def record(self, event: AuditEvent) -> None:
        line = json.dumps(self._event_to_dict(event), ensure_ascii=False) + "\n"
        with self._lock:
            with open(self._get_session_file(event.session_id), "a", encoding="utf-8") as f:
                f.write(line)

    def get_events(
        self, session_id: str, event_type: AuditEventType | None = None
    ) -> list[AuditEvent]:
        path = self._get_session_file(session_id)
        if not path.exists():
            return []
        events: list[AuditEvent] = []
        with open(path, encoding="utf-8") as f:
            for line in f:
                event = self._dict_to_event(json.loads(line))
                if event_type and event.event_type != event_type:
                    continue
                events.append(event)
        return sorted(events, key=lambda e: e.created_at)

    def _event_to_dict(self, event: AuditEvent) -> dict[str, Any]:
        """Serialize event to dict."""
        return {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "session_id": event.session_id,
            "role": event.role,
            "attempt": event.attempt,
            "status": event.status,
            "summary": event.summary,
            "created_at": event.created_at,
            "violations": [
                {
                    "role": v.role.value,
                    "rule_id": v.rule_id,
                    "matches": list(v.matches),
                    "pattern": v.pattern,
                }
                for v in event.violations
            ],
        }

    def _dict_to_event(self, data: dict[str, Any]) -> AuditEvent:
        """Deserialize dict to event."""
        return AuditEvent(
            event_id=data["event_id"],
            event_type=AuditEventType(data["event_type"]),
            session_id=data["session_id"],
            role=data["role"],
            attempt=data.get("attempt"),
            violations=tuple(
                Violation(
                    role=Role(v["role"]),
                    rule_id=v["rule_id"],
                    matches=tuple(v["matches"]),
                    pattern=v.get("pattern", ""),
                )
                for v in data.get("violations", [])
            ),
            status=data.get("status"),
            summary=data.get("summary", ""),
            created_at=data.get("created_at", ""),
        )
