"""Application context: builds and owns one instance of every service."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from ..errors import CommandError, WorkspaceError
from ..tf.executor import TfCommandExecutor
from ..utils.file_watcher import WorkspaceWatcher
from ..utils.log import configure_logging
from .auto_checkout import AutoCheckoutWatcher, DocumentSignals
from .command_history import CommandHistoryLog
from .config import ConfigStore, TfvcConfig
from .diagnostics import DiagnosticsReporter
from .fileset import FilesetManager
from .provider import TfvcProvider

logger = logging.getLogger(__name__)

WORKSPACE_ENV = "TFVCSYNC_WORKSPACE"


def resolve_workspace_root(workspace_root: Path | str | None = None) -> Path:
    """Return the workspace root or raise WorkspaceError."""
    candidate = workspace_root or os.environ.get(WORKSPACE_ENV)
    if not candidate:
        raise WorkspaceError("No workspace folder found")
    path = Path(candidate).expanduser()
    if not path.is_dir():
        raise WorkspaceError(f"Workspace folder does not exist: {path}")
    return path.resolve()


class ScmContext:
    """Wires the services together for one workspace.

    Components receive their collaborators from here instead of reaching for
    module-level singletons, so exactly one FilesetManager and one
    CommandHistoryLog exist per context.
    """

    def __init__(
        self,
        workspace_root: Path | str | None = None,
        config: TfvcConfig | None = None,
        config_store: ConfigStore | None = None,
    ):
        self.workspace_root = resolve_workspace_root(workspace_root)
        self.config_store = config_store or ConfigStore(self.workspace_root)
        self.config = config or self.config_store.load()
        self.config.validate()
        configure_logging(self.config.log_level)

        self.history = CommandHistoryLog()
        self.fileset = FilesetManager()
        self.executor = TfCommandExecutor(
            workspace_root=self.workspace_root,
            tf_path=self.config.tf_path,
            use_vs_credentials=self.config.use_vs_credentials,
            serialize=self.config.serialize_commands,
        )
        self.provider = TfvcProvider(self.executor, self.fileset, self.history)
        self.signals = DocumentSignals()
        self.auto_checkout = AutoCheckoutWatcher(self.provider, self.signals)
        self.diagnostics = DiagnosticsReporter(
            lambda: self.config, self.provider, self.fileset, self.history
        )

        self._fs_watcher: WorkspaceWatcher | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._disposed = False

        logger.debug(
            "TFVC context initialized (workspace_root=%s, tf_path=%s, use_vs_credentials=%s)",
            self.workspace_root,
            self.config.tf_path,
            self.config.use_vs_credentials,
        )

    async def start(self) -> None:
        """Detect the collection URL, load pending changes and enable auto-checkout."""
        self._loop = asyncio.get_running_loop()
        try:
            await self.provider.detect_collection_url()
        except Exception:
            logger.warning("Failed to detect collection URL", exc_info=True)
        await self.provider.log_environment_details()
        if self.config.auto_refresh_pending_changes:
            try:
                await self.provider.refresh_pending_changes()
            except CommandError:
                logger.warning("Initial pending changes refresh failed", exc_info=True)
        self._apply_watchers()

    async def generate_diagnostics_report(self) -> str:
        return await self.diagnostics.generate()

    def update_config(self, changes: dict) -> TfvcConfig:
        """Validate, persist and apply a settings change."""
        new_config = self.config.merged(changes)
        new_config.validate()
        self.config_store.save(new_config)
        self.config = new_config

        configure_logging(new_config.log_level)
        self.executor.tf_path = new_config.tf_path
        self.executor.use_vs_credentials = new_config.use_vs_credentials
        self.executor.serialize = new_config.serialize_commands
        self._apply_watchers()
        logger.info("Configuration updated: %s", sorted(changes))
        return new_config

    def _apply_watchers(self) -> None:
        self.auto_checkout.configure(
            self.config.auto_checkout,
            self.config.auto_checkout_on_save,
        )

        wants_fs_watcher = self.config.watch_file_system and self.config.auto_checkout
        if wants_fs_watcher and self._fs_watcher is None and self._loop is not None:
            self._fs_watcher = WorkspaceWatcher(self.workspace_root, self._on_disk_modified)
            self._fs_watcher.start()
        elif not wants_fs_watcher and self._fs_watcher is not None:
            self._fs_watcher.stop()
            self._fs_watcher = None

    def _on_disk_modified(self, path: Path) -> None:
        # Called on a watchdog thread.
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._fire_disk_saved, str(path))

    def _fire_disk_saved(self, path: str) -> None:
        if self.provider.is_writing_workspace():
            logger.debug("Ignoring modification written by tf: %s", path)
            return
        self.signals.fire_saved(path)

    async def shutdown(self) -> None:
        await self.auto_checkout.wait_idle()
        self.dispose()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._fs_watcher is not None:
            self._fs_watcher.stop()
            self._fs_watcher = None
        self.auto_checkout.dispose()
        self.signals.dispose()
        self.fileset.dispose()
