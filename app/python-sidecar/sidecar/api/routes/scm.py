"""
TFVC operation API routes
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from tfvcsync.core.context import ScmContext

from ..deps import get_context

router = APIRouter()
logger = logging.getLogger(__name__)


class ActionResponse(BaseModel):
    """Generic response for TFVC actions (checkin, checkout, shelve, etc.)."""

    success: bool
    message: str
    files: list[str] = []


class CheckinRequest(BaseModel):
    """Check in the given paths, or every included file when paths is omitted."""

    comment: str = Field(..., max_length=10000)
    paths: Optional[list[str]] = None


class CheckoutRequest(BaseModel):
    path: str


class ShelveRequest(BaseModel):
    name: str = Field(..., min_length=1)
    comment: str = ""
    paths: Optional[list[str]] = None


class UnshelveRequest(BaseModel):
    name: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)


class MergeRequest(BaseModel):
    source_branch: str = Field(..., min_length=1)
    target_branch: str = Field(..., min_length=1)


class HistoryItemResponse(BaseModel):
    changeset_id: str
    author: str
    date: str
    comment: Optional[str] = None


class DiffResponse(BaseModel):
    """Files a comparison view should show; original is None for added files."""

    original: Optional[str] = None
    modified: str
    title: str


@router.post("/checkin", response_model=ActionResponse)
async def checkin(request: CheckinRequest, context: ScmContext = Depends(get_context)) -> ActionResponse:
    provider = context.provider
    if request.paths is None:
        files = await provider.checkin_included(request.comment)
    else:
        files = list(request.paths)
        await provider.checkin(files, request.comment)
        await provider.refresh_pending_changes()
    return ActionResponse(success=True, message=f"Checked in {len(files)} file(s)", files=files)


@router.post("/checkout", response_model=ActionResponse)
async def checkout(request: CheckoutRequest, context: ScmContext = Depends(get_context)) -> ActionResponse:
    await context.provider.checkout(request.path)
    return ActionResponse(success=True, message=f"Checked out {request.path}", files=[request.path])


@router.post("/shelve", response_model=ActionResponse)
async def shelve(request: ShelveRequest, context: ScmContext = Depends(get_context)) -> ActionResponse:
    provider = context.provider
    if request.paths is None:
        files = await provider.shelve_included(request.name, request.comment)
    else:
        files = list(request.paths)
        await provider.create_shelveset(request.name, request.comment, files)
    return ActionResponse(success=True, message=f"Shelveset created: {request.name}", files=files)


@router.post("/unshelve", response_model=ActionResponse)
async def unshelve(request: UnshelveRequest, context: ScmContext = Depends(get_context)) -> ActionResponse:
    await context.provider.apply_shelveset(request.name, request.owner)
    return ActionResponse(success=True, message=f"Shelveset applied: {request.name}")


@router.post("/get-latest", response_model=ActionResponse)
async def get_latest(context: ScmContext = Depends(get_context)) -> ActionResponse:
    await context.provider.get_latest()
    return ActionResponse(success=True, message="Latest version retrieved")


@router.post("/merge", response_model=ActionResponse)
async def merge(request: MergeRequest, context: ScmContext = Depends(get_context)) -> ActionResponse:
    await context.provider.merge(request.source_branch, request.target_branch)
    return ActionResponse(
        success=True,
        message=f"Merged {request.source_branch} into {request.target_branch}",
    )


@router.post("/initialize", response_model=ActionResponse)
async def initialize(context: ScmContext = Depends(get_context)) -> ActionResponse:
    await context.provider.initialize_workspace()
    return ActionResponse(success=True, message="Workspace initialized")


@router.get("/history", response_model=list[HistoryItemResponse])
async def history(
    path: str = Query(..., min_length=1),
    context: ScmContext = Depends(get_context),
) -> list[HistoryItemResponse]:
    items = await context.provider.get_history(path)
    return [
        HistoryItemResponse(
            changeset_id=item.changeset_id,
            author=item.author,
            date=item.date,
            comment=item.comment,
        )
        for item in items
    ]


@router.get("/branches", response_model=list[str])
async def branches(context: ScmContext = Depends(get_context)) -> list[str]:
    return await context.provider.get_branches()


@router.get("/diff", response_model=DiffResponse)
async def diff(
    path: str = Query(..., min_length=1),
    context: ScmContext = Depends(get_context),
) -> DiffResponse:
    request = await context.provider.prepare_diff(path)
    return DiffResponse(
        original=str(request.original) if request.original else None,
        modified=str(request.modified),
        title=request.title,
    )
