"""
Test that nina_logging imports without circular imports and that the processors behave.
"""

from __future__ import annotations

import io
import json

from nina_sdk.nina_logging import logger as nina_logger


def test_logging_import():
    from nina_sdk.nina_logging import get_logger

    logger = get_logger("test")
    for method in ("debug", "info", "warning", "error", "exception"):
        assert hasattr(logger, method)
    logger.info("test_message", key="value")


def test_bind_wallet_logger():
    from nina_sdk.nina_logging import bind_wallet

    bind_wallet("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka").info("tx_sent", signature="abc")


def test_secrets_are_redacted():
    event = nina_logger._redact_secrets(None, "info", {"event": "x", "private_key": "5Kd3...", "txid": "abc"})
    assert event["private_key"] == nina_logger.REDACTED
    assert event["txid"] == "abc"


def test_json_format_renames_event():
    out = io.StringIO()
    try:
        nina_logger.configure_logging(level="INFO", fmt="json", stream=out)
        nina_logger.get_logger("test").info("hub_created", hub="h1", private_key="secret")
        line = json.loads(out.getvalue().strip().splitlines()[-1])
        assert line["event_type"] == "hub_created"
        assert line["hub"] == "h1"
        assert line["private_key"] == "***"
        assert line["level"] == "info"
    finally:
        nina_logger.configure_logging()


def test_level_filters():
    out = io.StringIO()
    try:
        nina_logger.configure_logging(level="WARNING", fmt="json", stream=out)
        nina_logger.get_logger("test").info("quiet")
        assert out.getvalue() == ""
    finally:
        nina_logger.configure_logging()
