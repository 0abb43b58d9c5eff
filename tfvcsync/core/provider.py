"""TFVC operations exposed to the editor side."""

from __future__ import annotations

import logging
import os
import platform
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path

from ..errors import CommandError
from ..models import ChangeStatus, DiffRequest, HistoryItem, PendingChange, WorkspaceInfo
from ..tf import parser
from ..tf.executor import TfCommandExecutor
from .command_history import CommandHistoryLog
from .fileset import FilesetManager

logger = logging.getLogger(__name__)

# Must exceed the file watcher debounce.
WRITE_SETTLE_SECONDS = 1.0


def _quoted(value: str) -> str:
    return f'"{value}"'


class TfvcProvider:
    """Runs tf operations and keeps the fileset in step with `tf status`.

    User-initiated operations raise :class:`CommandError` on failure. Probes
    used for environment detection and diagnostics run with suppressed
    errors and never raise.
    """

    def __init__(
        self,
        executor: TfCommandExecutor,
        fileset: FilesetManager,
        history: CommandHistoryLog,
    ):
        self.executor = executor
        self.fileset = fileset
        self.history = history
        self._workspace_writes = 0
        self._last_write_finished: float | None = None

    @property
    def workspace_root(self) -> Path:
        return self.executor.workspace_root

    @contextmanager
    def writing_workspace(self):
        """Mark a tf operation that rewrites workspace files (get, merge, unshelve)."""
        self._workspace_writes += 1
        try:
            yield
        finally:
            self._workspace_writes -= 1
            self._last_write_finished = time.monotonic()

    def is_writing_workspace(self) -> bool:
        """True while tf is writing the workspace and for a short settle period after."""
        if self._workspace_writes:
            return True
        if self._last_write_finished is None:
            return False
        return time.monotonic() - self._last_write_finished < WRITE_SETTLE_SECONDS

    # ------------------------------------------------------------------
    # Pending changes
    # ------------------------------------------------------------------

    async def refresh_pending_changes(self) -> list[PendingChange]:
        logger.debug("Refreshing pending changes")
        try:
            result = await self.executor.execute(["status", "/format:detailed"])
        except CommandError:
            logger.error("Failed to refresh pending changes")
            raise
        changes = parser.parse_pending_changes(result.stdout)
        self.fileset.set_pending_changes(changes)
        logger.info("Pending changes refreshed (count=%d)", len(changes))
        return changes

    async def get_file_status(self, path: str) -> ChangeStatus:
        logger.debug("Getting file status: %s", path)
        try:
            result = await self.executor.execute(["status", path])
        except CommandError:
            logger.error("Error getting file status: %s", path)
            raise
        return parser.parse_file_status(result.stdout)

    # ------------------------------------------------------------------
    # Checkout / checkin / shelvesets
    # ------------------------------------------------------------------

    async def checkout(self, path: str) -> None:
        logger.info("Checking out file: %s", path)
        try:
            await self.executor.execute(["checkout", path])
            logger.info("File checked out successfully: %s", path)
            await self.refresh_pending_changes()
        except CommandError as exc:
            logger.error("Failed to check out file: %s", path)
            raise CommandError.wrap("Failed to check out file", "checkout", [path], exc) from exc

    async def checkin(self, paths: list[str], comment: str) -> None:
        if not paths:
            raise ValueError("No files are included for check-in")
        args = ["-comment:", _quoted(comment), *paths]
        logger.info("Checking in %d file(s)", len(paths))
        try:
            await self.executor.execute(["checkin", *args])
        except CommandError as exc:
            logger.error("Failed to check in files: %s", paths)
            self.history.record("checkin", False)
            raise CommandError.wrap("Failed to check in files", "checkin", args, exc) from exc
        logger.info("Check-in completed successfully")
        self.history.record("checkin", True)

    async def checkin_included(self, comment: str) -> list[str]:
        """Check in every included file, then refresh pending changes."""
        paths = [change.path for change in self.fileset.get_included_files()]
        await self.checkin(paths, comment)
        await self.refresh_pending_changes()
        return paths

    async def create_shelveset(self, name: str, comment: str, paths: list[str]) -> None:
        if not paths:
            raise ValueError("No files are included for shelving")
        args = ["-comment:", _quoted(comment), "-name:", _quoted(name), *paths]
        logger.info("Creating shelveset %s with %d file(s)", name, len(paths))
        try:
            await self.executor.execute(["shelve", *args])
        except CommandError as exc:
            logger.error("Failed to create shelveset %s: %s", name, paths)
            self.history.record("shelve", False)
            raise CommandError.wrap("Failed to create shelveset", "shelve", args, exc) from exc
        logger.info("Shelveset created successfully: %s", name)
        self.history.record("shelve", True)

    async def shelve_included(self, name: str, comment: str) -> list[str]:
        paths = [change.path for change in self.fileset.get_included_files()]
        await self.create_shelveset(name, comment, paths)
        return paths

    async def apply_shelveset(self, name: str, owner: str) -> None:
        logger.info("Applying shelveset %s (owner=%s)", name, owner)
        try:
            with self.writing_workspace():
                await self.executor.execute(["unshelve", name, owner, "/recursive"])
        except CommandError:
            logger.error("Failed to apply shelveset %s (owner=%s)", name, owner)
            raise
        logger.info("Shelveset applied successfully: %s", name)

    # ------------------------------------------------------------------
    # Get latest / merge
    # ------------------------------------------------------------------

    async def get_latest(self) -> None:
        logger.info("Getting latest version")
        try:
            with self.writing_workspace():
                await self.executor.execute(["get", "/recursive"])
        except CommandError:
            logger.error("Failed to get latest version")
            raise
        logger.info("Latest version retrieved successfully")

    async def merge(self, source_branch: str, target_branch: str) -> None:
        logger.info("Starting merge %s -> %s", source_branch, target_branch)
        try:
            with self.writing_workspace():
                await self.get_latest()
                await self.executor.execute(["merge", source_branch, target_branch, "/recursive"])
        except CommandError:
            logger.error("Failed to merge %s -> %s", source_branch, target_branch)
            raise
        logger.info("Merge completed successfully: %s -> %s", source_branch, target_branch)

    # ------------------------------------------------------------------
    # History / branches / diffs
    # ------------------------------------------------------------------

    async def get_history(self, path: str) -> list[HistoryItem]:
        logger.debug("Getting file history: %s", path)
        try:
            result = await self.executor.execute(["history", path, "/format:detailed"])
        except CommandError as exc:
            logger.error("Failed to get file history: %s", path)
            self.history.record("history", False)
            raise CommandError.wrap("Failed to get file history", "history", [path], exc) from exc
        self.history.record("history", True)
        return parser.parse_history(result.stdout)

    async def get_branches(self) -> list[str]:
        logger.debug("Getting branches")
        try:
            result = await self.executor.execute(["branches"])
        except CommandError as exc:
            logger.error("Failed to get branches")
            self.history.record("branches", False)
            raise CommandError.wrap("Failed to get branches", "branches", [], exc) from exc
        self.history.record("branches", True)
        return parser.parse_branches(result.stdout)

    async def get_previous_version(self, path: str) -> Path:
        """Write the server version of ``path`` to a temp file and return it."""
        temp_file = Path(tempfile.gettempdir()) / f"tfvc_{Path(path).name}_prev"
        try:
            await self.executor.execute(["view", path, f"/output:{temp_file}"])
        except CommandError as exc:
            logger.error("Failed to get previous version: %s", path)
            self.history.record("view", False)
            raise CommandError.wrap("Failed to get previous version", "view", [path], exc) from exc
        self.history.record("view", True)
        return temp_file

    async def prepare_diff(self, path: str) -> DiffRequest:
        logger.info("Preparing diff for %s", path)
        name = Path(path).name
        try:
            status = await self.get_file_status(path)
        except CommandError as exc:
            raise CommandError.wrap("Failed to show diff", "difference", [path], exc) from exc
        if status == ChangeStatus.ADD:
            return DiffRequest(original=None, modified=Path(path), title=f"{name} (New File)")
        previous = await self.get_previous_version(path)
        return DiffRequest(original=previous, modified=Path(path), title=f"{name} (Changes)")

    # ------------------------------------------------------------------
    # Workspace and environment probes
    # ------------------------------------------------------------------

    async def detect_collection_url(self) -> str | None:
        result = await self.executor.execute(["workfold"], suppress_errors=True)
        url = parser.parse_collection_url(result.stdout)
        if url:
            self.executor.collection_url = url
            logger.info("Collection URL detected: %s", url)
        return url

    async def get_workspace_info(self) -> WorkspaceInfo:
        result = await self.executor.execute(["workfold"], suppress_errors=True)
        return parser.parse_workspace_info(result.stdout, str(self.workspace_root))

    async def get_tool_version(self) -> str:
        result = await self.executor.execute(["help"], suppress_errors=True)
        return parser.parse_tool_version(result.stdout)

    async def validate_credentials(self) -> bool:
        try:
            await self.executor.execute(["workspaces", "-format:brief"])
        except CommandError as exc:
            logger.error(
                "Credentials validation failed (use_vs_credentials=%s): %s",
                self.executor.use_vs_credentials,
                exc.message,
            )
            return False
        logger.info("Credentials validation successful")
        return True

    async def log_environment_details(self) -> None:
        logger.info(
            "TFVC environment: platform=%s arch=%s vs_install_dir=%s vssdk_install=%s tf_path=%s use_vs_credentials=%s",
            platform.system(),
            platform.machine(),
            "Set" if os.environ.get("VSINSTALLDIR") else "Not set",
            "Set" if os.environ.get("VSSDK140Install") else "Not set",
            self.executor.tf_path,
            self.executor.use_vs_credentials,
        )
        try:
            logger.info("TF command-line tool version: %s", await self.get_tool_version())
            logger.info("Workspace information: %s", (await self.get_workspace_info()).to_dict())
        except Exception:
            logger.warning("Failed to get complete environment details", exc_info=True)

    async def initialize_workspace(self) -> None:
        logger.info("Initializing TFVC workspace")
        await self.log_environment_details()

        if not await self.validate_credentials():
            logger.warning("Proceeding with workspace initialization despite credential validation failure")

        try:
            await self.executor.execute(["workspaces"])
        except CommandError:
            workspace_name = self.workspace_root.name
            await self.executor.execute(["workspace", "-new", workspace_name])
            logger.info("New workspace created: %s", workspace_name)
            return

        logger.info("Workspace already initialized")
        logger.info("Current workspace details: %s", (await self.get_workspace_info()).to_dict())
