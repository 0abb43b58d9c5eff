"""
Settings API routes
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tfvcsync.core.context import ScmContext

from ..deps import get_context

router = APIRouter()
logger = logging.getLogger(__name__)


class SettingsResponse(BaseModel):
    tf_path: str
    auto_checkout: bool
    auto_checkout_on_save: bool
    use_vs_credentials: bool
    show_status_bar_item: bool
    show_file_status: bool
    log_level: str
    auto_refresh_pending_changes: bool
    watch_file_system: bool
    serialize_commands: bool


@router.get("", response_model=SettingsResponse)
async def get_settings(context: ScmContext = Depends(get_context)) -> SettingsResponse:
    return SettingsResponse(**context.config.to_dict())


@router.put("", response_model=SettingsResponse)
async def update_settings(
    changes: dict[str, Any], context: ScmContext = Depends(get_context)
) -> SettingsResponse:
    """Apply a partial update. Unknown keys are rejected with 400."""
    config = context.update_config(changes)
    return SettingsResponse(**config.to_dict())
