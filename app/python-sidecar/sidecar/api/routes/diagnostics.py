"""
Diagnostics API routes
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from tfvcsync.core.context import ScmContext

from ..deps import get_context

router = APIRouter()


@router.get("", response_class=PlainTextResponse)
async def diagnostics(context: ScmContext = Depends(get_context)) -> str:
    """Markdown report for bug reports and troubleshooting."""
    return await context.generate_diagnostics_report()
