"""Shared utilities for tfvcsync."""

from .events import EventChannel, Subscription
from .file_watcher import WorkspaceWatcher
from .log import configure_logging

__all__ = [
    "EventChannel",
    "Subscription",
    "WorkspaceWatcher",
    "configure_logging",
]
