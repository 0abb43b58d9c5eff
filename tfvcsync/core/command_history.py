"""Bounded log of tracked tf invocations, shown in diagnostics."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

MAX_ENTRIES = 100


@dataclass(frozen=True)
class CommandHistoryEntry:
    """A single recorded invocation."""

    command: str
    success: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def format(self) -> str:
        mark = "✓" if self.success else "✗"
        return f"[{self.timestamp.isoformat()}] {mark} {self.command}"


class CommandHistoryLog:
    """Keeps the most recent invocations, dropping the oldest once full."""

    def __init__(self, max_entries: int = MAX_ENTRIES):
        self._entries: deque[CommandHistoryEntry] = deque(maxlen=max_entries)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    def record(self, command: str, success: bool) -> CommandHistoryEntry:
        entry = CommandHistoryEntry(command=command, success=success)
        self._entries.append(entry)
        return entry

    def recent(self, limit: int = 10) -> list[CommandHistoryEntry]:
        """Return the last ``limit`` entries, oldest first."""
        if limit <= 0:
            return []
        return list(self._entries)[-limit:]

    def __len__(self) -> int:
        return len(self._entries)
