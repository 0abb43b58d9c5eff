"""Workspace settings for the tf integration."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from ..errors import ConfigurationError
from .runtime import workspace_runtime_dir

logger = logging.getLogger(__name__)

LOG_LEVELS = ("debug", "info", "warning", "error")

# Environment variables that override persisted settings.
ENV_OVERRIDES = {
    "TFVCSYNC_TF_PATH": "tf_path",
    "TFVCSYNC_LOG_LEVEL": "log_level",
}


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass
class TfvcConfig:
    """Settings consumed by the executor, watcher and diagnostics."""

    tf_path: str = "tf"
    auto_checkout: bool = True
    auto_checkout_on_save: bool = False
    use_vs_credentials: bool = True
    show_status_bar_item: bool = True
    show_file_status: bool = True
    log_level: str = "info"
    auto_refresh_pending_changes: bool = True
    watch_file_system: bool = False
    serialize_commands: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> TfvcConfig:
        return cls(
            tf_path=str(data.get("tf_path") or "tf"),
            auto_checkout=_as_bool(data.get("auto_checkout"), True),
            auto_checkout_on_save=_as_bool(data.get("auto_checkout_on_save"), False),
            use_vs_credentials=_as_bool(data.get("use_vs_credentials"), True),
            show_status_bar_item=_as_bool(data.get("show_status_bar_item"), True),
            show_file_status=_as_bool(data.get("show_file_status"), True),
            log_level=str(data.get("log_level") or "info").lower(),
            auto_refresh_pending_changes=_as_bool(data.get("auto_refresh_pending_changes"), True),
            watch_file_system=_as_bool(data.get("watch_file_system"), False),
            serialize_commands=_as_bool(data.get("serialize_commands"), False),
        )

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merged(self, changes: dict) -> TfvcConfig:
        """Return a copy with known keys from ``changes`` applied."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigurationError(f"Unknown setting(s): {', '.join(unknown)}")
        return TfvcConfig.from_dict({**self.to_dict(), **changes})

    def validate(self) -> None:
        """Raise ConfigurationError for settings the tool cannot run with."""
        if not self.tf_path.strip():
            raise ConfigurationError("tf_path must not be empty")
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log_level '{self.log_level}'. Expected one of: {', '.join(LOG_LEVELS)}"
            )
        if self.auto_checkout_on_save and not self.auto_checkout:
            logger.debug("auto_checkout_on_save has no effect while auto_checkout is disabled")


class ConfigStore:
    """Loads and saves ``settings.json`` in the workspace runtime directory."""

    def __init__(self, workspace_root: Path, base_dir: Path | None = None):
        self.workspace_dir = workspace_runtime_dir(workspace_root, base_dir=base_dir)
        self.config_file = self.workspace_dir / "settings.json"

    def load(self) -> TfvcConfig:
        config = TfvcConfig()
        if self.config_file.exists():
            try:
                data = json.loads(self.config_file.read_text())
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Ignoring unreadable settings file %s: %s", self.config_file, exc)
                data = None
            if isinstance(data, dict):
                config = TfvcConfig.from_dict(data)
        return self._apply_env_overrides(config)

    def save(self, config: TfvcConfig) -> None:
        self.config_file.write_text(json.dumps(config.to_dict(), indent=2))

    @staticmethod
    def _apply_env_overrides(config: TfvcConfig) -> TfvcConfig:
        overrides = {}
        for env_name, field_name in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                overrides[field_name] = value.lower() if field_name == "log_level" else value
        return replace(config, **overrides) if overrides else config
