"""FastAPI dependencies shared by the route modules."""

from fastapi import HTTPException, Request

from tfvcsync.core.context import ScmContext


async def get_context(request: Request) -> ScmContext:
    """Return the workspace context the server was started with."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Workspace context is not initialized")
    return context
