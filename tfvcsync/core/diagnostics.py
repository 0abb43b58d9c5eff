"""Diagnostics report for troubleshooting tf integration problems."""

from __future__ import annotations

import logging
import os
import platform
from collections import Counter
from collections.abc import Awaitable, Callable

from .. import __version__
from ..models import PendingChange
from .command_history import CommandHistoryLog
from .config import TfvcConfig
from .fileset import FilesetManager
from .provider import TfvcProvider

logger = logging.getLogger(__name__)

NOT_DETECTED = "Not detected"
RECENT_COMMAND_LIMIT = 10

# Reported by presence only; values may point at credential stores.
CREDENTIAL_ENV_VARS = (
    ("VS Install Directory", "VSINSTALLDIR"),
    ("VS SDK Install", "VSSDK140Install"),
    ("DevEnv Path", "DevEnvDir"),
)


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def status_breakdown(changes: list[PendingChange]) -> list[str]:
    counts = Counter(change.status.value for change in changes)
    return [f"- {status}: {count}" for status, count in counts.items()]


class DiagnosticsReporter:
    """Builds the report one section at a time.

    A section whose data cannot be collected shows a placeholder; the rest of
    the report is still produced.
    """

    def __init__(
        self,
        config: Callable[[], TfvcConfig],
        provider: TfvcProvider,
        fileset: FilesetManager,
        history: CommandHistoryLog,
    ):
        self._config = config
        self.provider = provider
        self.fileset = fileset
        self.history = history

    async def generate(self) -> str:
        sections: list[str] = []

        async def add(title: str, build: Callable[[], Awaitable[str]], placeholder: str) -> None:
            try:
                content = await build()
            except Exception:
                logger.warning("Diagnostics section '%s' failed", title, exc_info=True)
                content = placeholder
            sections.append(f"### {title}\n\n{content}\n")

        await add("System Information", self._system_info, "Failed to retrieve system information")
        await add("TFVC Configuration", self._configuration, "Failed to retrieve configuration")
        await add("Visual Studio Environment", self._credential_env, "Failed to inspect environment")
        await add("Workspace Information", self._workspace_info, "Failed to retrieve workspace information")
        await add("TF Command-line Tool", self._tool_version, "Failed to get version information")
        await add("Pending Changes", self._pending_changes, "Failed to retrieve pending changes information")
        await add("Recent Command History", self._command_history, "Failed to retrieve command history")
        await add("Authentication Status", self._authentication, "❌ Authentication check failed")

        return "\n\n".join(sections)

    async def _system_info(self) -> str:
        return _bullets(
            [
                f"OS: {platform.system()} {platform.release()} {platform.machine()}",
                f"Platform: {platform.platform()}",
                f"Python: {platform.python_version()}",
                f"tfvcsync Version: {__version__}",
            ]
        )

    async def _configuration(self) -> str:
        config = self._config()
        return _bullets(
            [
                f"TF Path: {config.tf_path}",
                f"Using VS Credentials: {config.use_vs_credentials}",
                f"Auto Checkout: {config.auto_checkout}",
                f"Auto Checkout on Save: {config.auto_checkout_on_save}",
                f"Log Level: {config.log_level}",
                f"Show Status Bar: {config.show_status_bar_item}",
                f"Show File Status: {config.show_file_status}",
            ]
        )

    async def _credential_env(self) -> str:
        return _bullets(
            [
                f"{label}: {'Set' if os.environ.get(name) else 'Not set'}"
                for label, name in CREDENTIAL_ENV_VARS
            ]
        )

    async def _workspace_info(self) -> str:
        info = await self.provider.get_workspace_info()
        return _bullets(
            [
                f"Workspace Root: {info.workspace_root}",
                f"Collection URL: {info.collection_url or NOT_DETECTED}",
                f"Workspace Name: {info.workspace_name or NOT_DETECTED}",
                f"Owner: {info.owner or NOT_DETECTED}",
            ]
        )

    async def _tool_version(self) -> str:
        version = await self.provider.get_tool_version()
        return "\n".join(["```", version or NOT_DETECTED, "```"])

    async def _pending_changes(self) -> str:
        changes = self.fileset.get_all_files()
        included = sum(1 for change in changes if change.is_included)
        return "\n".join(
            [
                f"Total Changes: {len(changes)}",
                f"Included: {included}",
                f"Excluded: {len(changes) - included}",
                "",
                "Status Breakdown:",
                *status_breakdown(changes),
            ]
        )

    async def _command_history(self) -> str:
        entries = self.history.recent(RECENT_COMMAND_LIMIT)
        return "\n".join(["```", *(entry.format() for entry in entries), "```"])

    async def _authentication(self) -> str:
        if await self.provider.validate_credentials():
            return "✅ Authentication successful"
        return "❌ Authentication failed"
