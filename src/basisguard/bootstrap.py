"""
Composition root: wire a TurnProcessor from environment settings.

Reads:
- BASIS_ROLE_CONFIG: path to a role override JSON file
- BASIS_AUDIT_DIR: directory for per-session JSONL audit files
  (unset: audit events go to the ``basisguard.audit`` logger)
- the variables read by PipelineConfig, LoggingConfig and
  OpenAICompletionConfig
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from basisguard.application.turns import TurnProcessor
from basisguard.config import PipelineConfig, load_role_configs
from basisguard.domain.interfaces import (
    AuditSinkInterface,
    CompletionClientInterface,
    SessionStoreInterface,
)
from basisguard.infrastructure.audit import JsonlAuditLog, LoggingAuditSink
from basisguard.infrastructure.llm import OpenAICompletionClient
from basisguard.infrastructure.persistence import InMemorySessionStore
from basisguard.logging_setup import LoggingConfig, setup_logging

logger = logging.getLogger(__name__)


def audit_sink_from_env(environ: dict[str, str] | None = None) -> AuditSinkInterface:
    """JSONL files under BASIS_AUDIT_DIR, or the audit logger when unset."""
    env = os.environ if environ is None else environ
    audit_dir = env.get("BASIS_AUDIT_DIR")
    if audit_dir:
        return JsonlAuditLog(Path(audit_dir))
    return LoggingAuditSink()


def build_turn_processor(
    sessions: SessionStoreInterface | None = None,
    client: CompletionClientInterface | None = None,
    environ: dict[str, str] | None = None,
    configure_logging: bool = True,
) -> TurnProcessor:
    """
    Build a ready-to-use TurnProcessor.

    Args:
        sessions: Session store (default: InMemorySessionStore)
        client: Completion boundary (default: OpenAICompletionClient)
        environ: Settings source (default: os.environ)
        configure_logging: Install basisguard log handlers first

    Returns:
        TurnProcessor with queued audit

    Raises:
        ConfigurationError: If a setting or the role override file is invalid
    """
    env = os.environ if environ is None else environ
    if configure_logging:
        setup_logging(LoggingConfig.from_env(env))

    role_path = env.get("BASIS_ROLE_CONFIG")
    role_configs = load_role_configs(Path(role_path) if role_path else None)
    pipeline = PipelineConfig.from_env(env)
    audit_sink = audit_sink_from_env(env)

    logger.info(
        "Building turn processor (roles=%s, history_window=%d, turn_timeout=%.1fs, audit=%s)",
        sorted(r.value for r in role_configs),
        pipeline.history_window,
        pipeline.turn_timeout,
        type(audit_sink).__name__,
    )
    return TurnProcessor(
        sessions if sessions is not None else InMemorySessionStore(),
        client if client is not None else OpenAICompletionClient(),
        role_configs,
        pipeline,
        audit_sink=audit_sink,
    )
