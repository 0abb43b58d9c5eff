"""File system monitoring that feeds on-disk edits into auto-checkout."""

import fnmatch
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# tf keeps local workspace metadata in these folders; edits there are its own.
IGNORED_DIRS = ("$tf", ".tf", ".git", "__pycache__")


class FileChangeHandler(FileSystemEventHandler):
    """Handler for file system events."""

    def __init__(
        self,
        callback: Callable[[Path, str], None],
        patterns: list[str],
        debounce_ms: int = 500,
    ):
        super().__init__()
        self.callback = callback
        self.patterns = patterns
        self.debounce_ms = debounce_ms
        self._debounce_timer: threading.Timer | None = None
        self._pending_events: dict[str, str] = {}
        self._lock = threading.Lock()

    def _matches(self, path: Path) -> bool:
        if any(part in IGNORED_DIRS for part in path.parts):
            return False
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.patterns)

    def _handle_event(self, event: FileSystemEvent, event_type: str) -> None:
        """Handle a file system event with debouncing."""
        if event.is_directory:
            return

        path = Path(str(event.src_path))
        if not self._matches(path):
            return

        with self._lock:
            self._pending_events[str(path)] = event_type

            if self._debounce_timer:
                self._debounce_timer.cancel()

            self._debounce_timer = threading.Timer(
                self.debounce_ms / 1000.0,
                self._flush_events,
            )
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    def _flush_events(self) -> None:
        """Flush pending events after debounce period."""
        with self._lock:
            events = self._pending_events.copy()
            self._pending_events.clear()

        for path_str, event_type in events.items():
            try:
                self.callback(Path(path_str), event_type)
            except Exception:
                logger.exception("File change callback failed for %s", path_str)

    def cancel(self) -> None:
        with self._lock:
            if self._debounce_timer:
                self._debounce_timer.cancel()
            self._pending_events.clear()

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle_event(event, "modified")


class WorkspaceWatcher:
    """Watches a workspace tree and reports modified files.

    Usage:
        watcher = WorkspaceWatcher(Path("/work"), lambda p: print(f"{p} modified"))
        watcher.start()
        # ... later
        watcher.stop()

    The callback runs on a watchdog timer thread. Callers that need to be on
    an event loop must marshal the call themselves.
    """

    def __init__(
        self,
        root: Path,
        on_modified: Callable[[Path], None],
        patterns: list[str] | None = None,
        debounce_ms: int = 500,
    ):
        self.root = root
        self._handler = FileChangeHandler(
            callback=lambda path, _event_type: on_modified(path),
            patterns=patterns or ["*"],
            debounce_ms=debounce_ms,
        )
        self._observer: Observer | None = None
        self._running = False

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self.root), recursive=True)
        self._observer.start()
        self._running = True
        logger.info("Watching %s for modifications", self.root)

    def stop(self) -> None:
        """Stop watching for changes."""
        if self._observer and self._running:
            self._handler.cancel()
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._running = False

    def is_running(self) -> bool:
        return self._running

    def __enter__(self) -> "WorkspaceWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
