"""
structlog setup for the SDK.

Modules call get_logger(__name__) and log a snake_case event name with keyword
context (hub=..., release=..., txid=...). Output goes to stderr so the CLI can
keep stdout for JSON results. LOG_LEVEL and LOG_FORMAT (console | json) pick the
defaults; configure_logging() changes them at runtime.

No nina_sdk imports here: every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

# Keys whose values never reach a log line
SECRET_KEYS = frozenset({"private_key", "secret_key", "keypair", "seed_phrase"})
REDACTED = "***"


def _level_value(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    return getattr(logging, name, logging.INFO)


def _redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _event_to_event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """JSON lines carry the event name as event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None, stream: Any = None) -> None:
    """
    (Re)configure structlog. Safe to call more than once; the last call wins.

    Args:
        level: DEBUG / INFO / WARNING / ERROR. Defaults to LOG_LEVEL, then INFO.
        fmt: "console" or "json". Defaults to LOG_FORMAT, then console.
        stream: Text stream to write to. Defaults to stderr.
    """
    fmt = (fmt or os.getenv("LOG_FORMAT", "console")).strip().lower()
    stream = stream or sys.stderr
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors += [_event_to_event_type, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_value(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger bound to the module name.

        logger = get_logger(__name__)
        logger.info("release_purchased", release=pk, txid=sig)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet: str) -> structlog.BoundLogger:
    """Logger that tags every line with the signing wallet's public key."""
    return get_logger("nina_sdk").bind(wallet=wallet)
