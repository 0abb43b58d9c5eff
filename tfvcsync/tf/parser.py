"""Line-oriented parsers for tf text output.

tf prints human-readable text whose layout is not stable across versions, so
every parser here scans line by line and skips anything it does not
recognize instead of failing.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..models import ChangeStatus, HistoryItem, PendingChange, WorkspaceInfo

T = TypeVar("T")


@dataclass(frozen=True)
class LinePattern(Generic[T]):
    """A compiled pattern plus the function that builds a record from its match."""

    regex: re.Pattern[str]
    build: Callable[[re.Match[str]], T | None]

    def match(self, line: str) -> T | None:
        found = self.regex.search(line)
        if not found:
            return None
        return self.build(found)


def iter_lines(output: str) -> Iterator[str]:
    for line in output.split("\n"):
        yield line.rstrip("\r")


def scan(output: str, patterns: Iterable[LinePattern[T]]) -> list[T]:
    """Try each pattern in order on every line; keep the first record produced."""
    patterns = list(patterns)
    records: list[T] = []
    for line in iter_lines(output):
        for pattern in patterns:
            record = pattern.match(line)
            if record is not None:
                records.append(record)
                break
    return records


PENDING_CHANGE = LinePattern(
    re.compile(r"^(add|edit|delete|rename)\s+(.+)$", re.IGNORECASE),
    lambda m: PendingChange(
        path=m.group(2).strip(),
        status=ChangeStatus(m.group(1).lower()),
        is_included=True,
    ),
)

HISTORY_ENTRY = LinePattern(
    re.compile(r"Changeset:\s*(\d+)\s*Author:\s*(.+)\s*Date:\s*(.+)", re.IGNORECASE),
    lambda m: HistoryItem(
        changeset_id=m.group(1),
        author=m.group(2).strip(),
        date=m.group(3).strip(),
    ),
)

BRANCH = LinePattern(
    re.compile(r"Branch:\s*(.+)", re.IGNORECASE),
    lambda m: m.group(1).strip() or None,
)

COLLECTION_URL = re.compile(r"Collection: (https?://\S+)", re.IGNORECASE)
WORKSPACE_NAME = re.compile(r"Workspace:\s*([^\r\n]+)", re.IGNORECASE)
OWNER = re.compile(r"Owner:\s*([^\r\n]+)", re.IGNORECASE)

# Checked in this order; the first keyword found anywhere in the output wins.
FILE_STATUS_KEYWORDS = (
    ChangeStatus.EDIT,
    ChangeStatus.ADD,
    ChangeStatus.DELETE,
    ChangeStatus.RENAME,
)


def parse_pending_changes(output: str) -> list[PendingChange]:
    return scan(output, [PENDING_CHANGE])


def parse_file_status(output: str) -> ChangeStatus:
    for status in FILE_STATUS_KEYWORDS:
        if status.value in output:
            return status
    return ChangeStatus.NONE


def parse_history(output: str) -> list[HistoryItem]:
    return scan(output, [HISTORY_ENTRY])


def parse_branches(output: str) -> list[str]:
    return scan(output, [BRANCH])


def parse_collection_url(output: str) -> str | None:
    match = COLLECTION_URL.search(output)
    return match.group(1) if match else None


def parse_workspace_info(output: str, workspace_root: str) -> WorkspaceInfo:
    info = WorkspaceInfo(workspace_root=workspace_root)
    info.collection_url = parse_collection_url(output)

    match = WORKSPACE_NAME.search(output)
    if match:
        info.workspace_name = match.group(1).strip()

    match = OWNER.search(output)
    if match:
        info.owner = match.group(1).strip()

    return info


def parse_tool_version(output: str) -> str:
    """First line of `tf help`, which carries the product and version banner."""
    return next(iter_lines(output), "").strip()
