"""Tests for the subscriber registry."""

from __future__ import annotations

import logging

from larder.engine.listeners import ListenerRegistry


def test_unsubscribe_is_idempotent():
    registry = ListenerRegistry()
    calls = []
    unsubscribe = registry.subscribe(lambda: calls.append("a"))

    registry.notify()
    unsubscribe()
    unsubscribe()
    registry.notify()

    assert calls == ["a"]
    assert len(registry) == 0


def test_failing_listener_does_not_block_others(caplog):
    registry = ListenerRegistry()
    calls = []

    def broken() -> None:
        raise RuntimeError("boom")

    registry.subscribe(broken)
    registry.subscribe(lambda: calls.append("ok"))

    with caplog.at_level(logging.ERROR, logger="larder.engine.listeners"):
        registry.notify()

    assert calls == ["ok"]
    assert "failed" in caplog.text
