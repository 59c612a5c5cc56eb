"""Pull-based change notification for engine subscribers."""

from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class ListenerRegistry:
    """Subscribers are called with no payload and re-read state through the engine getters."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, callback: Listener) -> Unsubscribe:
        if callback not in self._listeners:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Listener %r failed", callback)

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["Listener", "ListenerRegistry", "Unsubscribe"]
