"""Pending-change state, auto-checkout and diagnostics."""

from ..errors import CommandError, ConfigurationError, TfvcError, WorkspaceError
from ..models import ChangeStatus, DiffRequest, HistoryItem, PendingChange, WorkspaceInfo
from .auto_checkout import AutoCheckoutWatcher, DocumentEvent, DocumentSignals
from .command_history import CommandHistoryEntry, CommandHistoryLog
from .config import ConfigStore, TfvcConfig
from .context import ScmContext, resolve_workspace_root
from .diagnostics import DiagnosticsReporter
from .fileset import FilesetManager
from .provider import TfvcProvider

__all__ = [
    "AutoCheckoutWatcher",
    "ChangeStatus",
    "CommandError",
    "CommandHistoryEntry",
    "CommandHistoryLog",
    "ConfigStore",
    "ConfigurationError",
    "DiagnosticsReporter",
    "DiffRequest",
    "DocumentEvent",
    "DocumentSignals",
    "FilesetManager",
    "HistoryItem",
    "PendingChange",
    "ScmContext",
    "TfvcConfig",
    "TfvcError",
    "TfvcProvider",
    "WorkspaceError",
    "WorkspaceInfo",
    "resolve_workspace_root",
]
