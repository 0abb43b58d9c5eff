"""Synchronous publish/subscribe channel."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by :meth:`EventChannel.subscribe`."""

    def __init__(self, channel: EventChannel, callback: Callable[..., Any]):
        self._channel = channel
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        if self._active:
            self._channel._remove(self._callback)
            self._active = False


class EventChannel:
    """Delivers fired events to subscribers in registration order.

    Usage:
        channel = EventChannel("fileset")
        sub = channel.subscribe(lambda: print("changed"))
        channel.fire()
        sub.dispose()
    """

    def __init__(self, name: str = "event"):
        self.name = name
        self._callbacks: list[Callable[..., Any]] = []
        self._disposed = False

    def subscribe(self, callback: Callable[..., Any]) -> Subscription:
        if self._disposed:
            raise RuntimeError(f"Event channel '{self.name}' is disposed")
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def fire(self, *args: Any) -> None:
        """Call every subscriber; a failing subscriber does not stop delivery."""
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("Subscriber %r on '%s' failed", callback, self.name)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def dispose(self) -> None:
        self._callbacks.clear()
        self._disposed = True

    def _remove(self, callback: Callable[..., Any]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)
