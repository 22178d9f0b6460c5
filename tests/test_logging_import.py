"""
Test that riskoracle_logging can be imported without circular import and logger works.
"""

from __future__ import annotations

import json

import structlog


def test_logging_import():
    """Import get_logger from riskoracle_logging and use the logger."""
    from backend_riskoracle.riskoracle_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_processors_rename_event_and_lowercase_addresses():
    from backend_riskoracle.riskoracle_logging.logger import (
        _add_timestamp,
        _normalize_addresses,
        _normalize_event,
    )

    event_dict = {"event": "tier_transition", "wallet_id": "0xABCDEF" + "0" * 34, "new_tier": 2}
    for processor in (_add_timestamp, _normalize_event, _normalize_addresses):
        event_dict = processor(None, "info", event_dict)
    record = json.loads(structlog.processors.JSONRenderer()(None, "info", event_dict))
    assert record["event_type"] == "tier_transition"
    assert "event" not in record
    assert record["wallet_id"] == "0xabcdef" + "0" * 34
    assert record["new_tier"] == 2
    assert "timestamp" in record
