"""Per-workspace runtime storage helpers."""

from __future__ import annotations

import hashlib
import os
import tempfile
import uuid
from pathlib import Path


def _is_writable_dir(path: Path) -> bool:
    """Return whether path exists and accepts create/write/delete operations."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / f".tfvcsync-write-probe-{uuid.uuid4().hex}"
        probe.write_text("ok")
        probe.unlink(missing_ok=True)
        return True
    except OSError:
        return False


def resolve_runtime_home() -> Path:
    """Resolve the runtime home with a writable fallback for restricted envs."""
    configured = os.environ.get("TFVCSYNC_HOME")
    if configured:
        path = Path(configured).expanduser()
        if _is_writable_dir(path):
            return path

    preferred = Path.home() / ".tfvcsync"
    if _is_writable_dir(preferred):
        return preferred

    fallback = Path(tempfile.gettempdir()) / "tfvcsync-runtime"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def workspace_id_for_path(workspace_root: Path) -> str:
    """Return a stable id for a workspace root."""
    return hashlib.md5(str(workspace_root.resolve()).encode("utf-8")).hexdigest()[:16]


def workspace_runtime_dir(workspace_root: Path, base_dir: Path | None = None) -> Path:
    """Return (and create) the runtime directory for a workspace."""
    root = base_dir or (resolve_runtime_home() / "workspaces")
    target = root / workspace_id_for_path(workspace_root)
    target.mkdir(parents=True, exist_ok=True)
    return target
