"""tf process execution and output parsing."""

from .executor import CommandResult, TfCommandExecutor, build_tf_environment
from .parser import (
    parse_branches,
    parse_file_status,
    parse_history,
    parse_pending_changes,
    parse_workspace_info,
)

__all__ = [
    "CommandResult",
    "TfCommandExecutor",
    "build_tf_environment",
    "parse_branches",
    "parse_file_status",
    "parse_history",
    "parse_pending_changes",
    "parse_workspace_info",
]
