"""Automatic checkout of tracked files when the editor modifies them."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..errors import TfvcError
from ..models import ChangeStatus
from ..utils.events import EventChannel, Subscription
from .provider import TfvcProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentEvent:
    """A document change or save reported by the editor."""

    path: str
    scheme: str = "file"


class DocumentSignals:
    """The two editor signals auto-checkout listens to."""

    def __init__(self) -> None:
        self.on_changed = EventChannel("document-changed")
        self.on_saved = EventChannel("document-saved")

    def fire_changed(self, path: str, scheme: str = "file") -> None:
        self.on_changed.fire(DocumentEvent(path=path, scheme=scheme))

    def fire_saved(self, path: str, scheme: str = "file") -> None:
        self.on_saved.fire(DocumentEvent(path=path, scheme=scheme))

    def dispose(self) -> None:
        self.on_changed.dispose()
        self.on_saved.dispose()


class AutoCheckoutWatcher:
    """Checks out a file the first time it is edited.

    A path being processed is skipped if another signal arrives for it; the
    signal is dropped, not queued. Different paths are handled concurrently.
    """

    def __init__(self, provider: TfvcProvider, signals: DocumentSignals):
        self.provider = provider
        self.signals = signals
        self._subscriptions: list[Subscription] = []
        self._processing: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_subscribed(self) -> bool:
        return bool(self._subscriptions)

    def is_processing(self, path: str) -> bool:
        return path in self._processing

    def configure(self, auto_checkout: bool, auto_checkout_on_save: bool) -> None:
        """Replace the signal subscriptions to match the given settings."""
        self._unsubscribe()
        if not auto_checkout:
            logger.debug("Auto-checkout disabled")
            return

        if not auto_checkout_on_save:
            self._subscriptions.append(self.signals.on_changed.subscribe(self._on_signal))
        self._subscriptions.append(self.signals.on_saved.subscribe(self._on_signal))
        logger.debug("Auto-checkout enabled (save_only=%s)", auto_checkout_on_save)

    def _on_signal(self, event: DocumentEvent) -> None:
        if event.scheme != "file":
            return
        self.trigger(event.path)

    def trigger(self, path: str) -> asyncio.Task | None:
        """Start handling ``path`` on the running loop unless it is already in flight."""
        if path in self._processing:
            logger.debug("Auto-checkout already in progress, skipping: %s", path)
            return None
        loop = asyncio.get_running_loop()
        self._processing.add(path)
        task = loop.create_task(self._process(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def handle_file_change(self, path: str) -> bool:
        """Handle ``path`` inline. Returns False when it was already in flight."""
        if path in self._processing:
            logger.debug("Auto-checkout already in progress, skipping: %s", path)
            return False
        self._processing.add(path)
        await self._process(path)
        return True

    async def _process(self, path: str) -> None:
        try:
            status = await self.provider.get_file_status(path)
            if status != ChangeStatus.EDIT:
                logger.debug("Auto-checking out file: %s (status=%s)", path, status.value)
                await self.provider.checkout(path)
                logger.info("Auto-checkout successful: %s", path)
        except TfvcError as exc:
            # Must not reach the editor's change/save pipeline.
            logger.error("Auto-checkout failed: %s: %s", path, exc.to_dict(), exc_info=True)
        except Exception:
            logger.exception("Auto-checkout failed: %s", path)
        finally:
            self._processing.discard(path)

    async def wait_idle(self) -> None:
        """Wait until every scheduled checkout has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _unsubscribe(self) -> None:
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

    def dispose(self) -> None:
        self._unsubscribe()
