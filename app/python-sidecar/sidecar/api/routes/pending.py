"""
Pending changes API routes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tfvcsync.core.context import ScmContext
from tfvcsync.models import PendingChange

from ..deps import get_context

router = APIRouter()
logger = logging.getLogger(__name__)


class PendingChangeResponse(BaseModel):
    """A pending change and whether it takes part in the next checkin."""

    path: str
    status: str
    is_included: bool


class PendingChangesResponse(BaseModel):
    all: list[PendingChangeResponse]
    included: list[PendingChangeResponse]
    excluded: list[PendingChangeResponse]


class ToggleRequest(BaseModel):
    path: str


class InclusionRequest(BaseModel):
    path: str
    included: bool


def _to_response(changes: list[PendingChange]) -> list[PendingChangeResponse]:
    return [PendingChangeResponse(**change.to_dict()) for change in changes]


def _snapshot(context: ScmContext) -> PendingChangesResponse:
    fileset = context.fileset
    return PendingChangesResponse(
        all=_to_response(fileset.get_all_files()),
        included=_to_response(fileset.get_included_files()),
        excluded=_to_response(fileset.get_excluded_files()),
    )


@router.get("", response_model=PendingChangesResponse)
async def list_pending_changes(context: ScmContext = Depends(get_context)) -> PendingChangesResponse:
    return _snapshot(context)


@router.post("/refresh", response_model=PendingChangesResponse)
async def refresh_pending_changes(context: ScmContext = Depends(get_context)) -> PendingChangesResponse:
    """Run `tf status` and replace the pending-change set."""
    await context.provider.refresh_pending_changes()
    return _snapshot(context)


@router.post("/toggle", response_model=PendingChangesResponse)
async def toggle_inclusion(
    request: ToggleRequest, context: ScmContext = Depends(get_context)
) -> PendingChangesResponse:
    if not any(change.path == request.path for change in context.fileset.get_all_files()):
        raise HTTPException(status_code=404, detail=f"No pending change for {request.path}")
    context.fileset.toggle_file_inclusion(request.path)
    return _snapshot(context)


@router.post("/include", response_model=PendingChangesResponse)
async def set_inclusion(
    request: InclusionRequest, context: ScmContext = Depends(get_context)
) -> PendingChangesResponse:
    if not any(change.path == request.path for change in context.fileset.get_all_files()):
        raise HTTPException(status_code=404, detail=f"No pending change for {request.path}")
    context.fileset.set_file_inclusion(request.path, request.included)
    return _snapshot(context)
