"""In-memory pending-change set with per-file inclusion flags."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from ..models import PendingChange
from ..utils.events import EventChannel, Subscription

logger = logging.getLogger(__name__)


class FilesetManager:
    """Owns the pending changes and which of them are included in the next checkin.

    One instance exists per process; the application context creates it and
    hands it to everything that reads or changes inclusion. Subscribers get a
    payload-free notification and re-read whatever state they need.
    """

    def __init__(self) -> None:
        self._pending_changes: dict[str, PendingChange] = {}
        self._on_did_change = EventChannel("fileset")
        self._disposed = False

    def on_did_change(self, callback: Callable[[], None]) -> Subscription:
        return self._on_did_change.subscribe(callback)

    def set_pending_changes(self, changes: Iterable[PendingChange]) -> None:
        changes = list(changes)
        logger.info("Setting pending changes (count=%d)", len(changes))
        self._pending_changes = {
            change.path: replace(change, is_included=True) for change in changes
        }
        self._on_did_change.fire()

    def toggle_file_inclusion(self, path: str) -> None:
        change = self._pending_changes.get(path)
        if change is None:
            return
        change.is_included = not change.is_included
        self._on_did_change.fire()
        logger.info("Toggled file inclusion: %s (included=%s)", path, change.is_included)

    def set_file_inclusion(self, path: str, included: bool) -> None:
        change = self._pending_changes.get(path)
        if change is None:
            return
        change.is_included = included
        self._on_did_change.fire()
        logger.info("Set file inclusion: %s (included=%s)", path, included)

    def get_included_files(self) -> list[PendingChange]:
        return [replace(c) for c in self._pending_changes.values() if c.is_included]

    def get_excluded_files(self) -> list[PendingChange]:
        return [replace(c) for c in self._pending_changes.values() if not c.is_included]

    def get_all_files(self) -> list[PendingChange]:
        return [replace(c) for c in self._pending_changes.values()]

    def is_file_included(self, path: str) -> bool:
        change = self._pending_changes.get(path)
        return change.is_included if change else False

    def clear(self) -> None:
        self._pending_changes.clear()
        self._on_did_change.fire()
        logger.info("Cleared pending changes")

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._on_did_change.dispose()
        self._pending_changes.clear()
