"""
Logging configuration for services embedding the basisguard pipeline.

Three destinations:
- console: INFO (DEBUG when verbose, which shows raw model output before
  guardrails)
- log file: everything from the ``basisguard`` package at DEBUG
- audit file: only the ``basisguard.audit`` logger that LoggingAuditSink
  writes to, so guardrail violations can be kept apart from pipeline noise

Branches run on worker threads named ``basisguard-branch_N``; every format
carries the thread name so interleaved role output can be told apart.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

PACKAGE_LOGGER = "basisguard"
AUDIT_LOGGER = "basisguard.audit"

CONSOLE_FORMAT = "%(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
AUDIT_FORMAT = "%(asctime)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpx", "openai", "httpcore", "urllib3")

# Marks handlers installed here so a second setup call replaces them.
_HANDLER_MARK = "_basisguard_handler"


@dataclass
class LoggingConfig:
    """Where and how verbosely the pipeline logs."""

    verbose: bool = False
    log_file: str | None = None
    audit_log_file: str | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> LoggingConfig:
        """
        Build config from BASIS_LOG_VERBOSE, BASIS_LOG_FILE and
        BASIS_AUDIT_LOG_FILE; unset or empty variables keep defaults.
        """
        env = os.environ if environ is None else environ
        return cls(
            verbose=env.get("BASIS_LOG_VERBOSE", "").lower() in ("1", "true", "yes"),
            log_file=env.get("BASIS_LOG_FILE") or None,
            audit_log_file=env.get("BASIS_AUDIT_LOG_FILE") or None,
        )


def _file_handler(path: str, fmt: str) -> logging.FileHandler:
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def _install(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)


def setup_logging(
    config: LoggingConfig | None = None,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Configure console, file and audit-file logging.

    Safe to call more than once: handlers from an earlier call are closed
    and replaced, never stacked.

    Args:
        config: Destinations and verbosity (default: LoggingConfig.from_env())
        logger_name: Root of the configured tree (default: the whole package)

    Returns:
        Configured logger instance
    """
    config = config if config is not None else LoggingConfig.from_env()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if config.verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    handlers: list[logging.Handler] = [console_handler]
    if config.log_file:
        handlers.append(_file_handler(config.log_file, FILE_FORMAT))

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    _install(logger, handlers)

    audit_logger = logging.getLogger(AUDIT_LOGGER)
    _install(
        audit_logger,
        [_file_handler(config.audit_log_file, AUDIT_FORMAT)]
        if config.audit_log_file
        else [],
    )

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
