"""Records parsed from tf output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ChangeStatus(str, Enum):
    """Pending change kinds reported by `tf status`."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    RENAME = "rename"
    NONE = "none"


@dataclass
class PendingChange:
    """A local modification waiting to be checked in or shelved."""

    path: str
    status: ChangeStatus
    is_included: bool = True

    def to_dict(self) -> dict:
        return {"path": self.path, "status": self.status.value, "is_included": self.is_included}


@dataclass(frozen=True)
class HistoryItem:
    """One changeset from `tf history`."""

    changeset_id: str
    author: str
    date: str
    comment: str | None = None


@dataclass
class WorkspaceInfo:
    """Fields extracted from `tf workfold`. Optional fields stay None when not found."""

    workspace_root: str
    collection_url: str | None = None
    workspace_name: str | None = None
    owner: str | None = None

    def to_dict(self) -> dict:
        return {
            "workspace_root": self.workspace_root,
            "collection_url": self.collection_url,
            "workspace_name": self.workspace_name,
            "owner": self.owner,
        }


@dataclass(frozen=True)
class DiffRequest:
    """What a file-comparison view should show. ``original`` is None for new files."""

    original: Path | None
    modified: Path
    title: str
