"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from larder.logging_utils import configure_logging


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord(
        name="larder.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_tokens(fmt):
    secret = "top-secret-token"
    configure_logging("INFO", fmt, [secret])

    handler = logging.getLogger().handlers[0]
    record = _record("Authorization header Bearer %s", secret)

    for filter_ in handler.filters:
        filter_.filter(record)

    formatted = handler.format(record)
    assert secret not in formatted
    assert "[redacted]" in formatted


def test_json_formatter_carries_operation_fields():
    configure_logging("DEBUG", "json")

    handler = logging.getLogger().handlers[0]
    record = _record("Failed to persist %s", "inventory_items")
    record.table = "inventory_items"
    record.request_id = "req-1"

    payload = json.loads(handler.format(record))

    assert payload["message"] == "Failed to persist inventory_items"
    assert payload["table"] == "inventory_items"
    assert payload["request_id"] == "req-1"
    assert "operation" not in payload
    assert logging.getLogger().level == logging.DEBUG
