"""
Editor signal API routes

The editor posts document changes and saves here; auto-checkout reacts to
them on the server's event loop.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tfvcsync.core.context import ScmContext

from ..deps import get_context

router = APIRouter()
logger = logging.getLogger(__name__)


class DocumentEventRequest(BaseModel):
    path: str
    scheme: str = "file"


class SignalResponse(BaseModel):
    accepted: bool
    processing: bool


def _response(context: ScmContext, path: str) -> SignalResponse:
    return SignalResponse(
        accepted=context.auto_checkout.is_subscribed,
        processing=context.auto_checkout.is_processing(path),
    )


@router.post("/changed", response_model=SignalResponse)
async def document_changed(
    request: DocumentEventRequest, context: ScmContext = Depends(get_context)
) -> SignalResponse:
    context.signals.fire_changed(request.path, request.scheme)
    return _response(context, request.path)


@router.post("/saved", response_model=SignalResponse)
async def document_saved(
    request: DocumentEventRequest, context: ScmContext = Depends(get_context)
) -> SignalResponse:
    context.signals.fire_saved(request.path, request.scheme)
    return _response(context, request.path)
