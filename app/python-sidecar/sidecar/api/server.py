"""
tfvcsync Backend - FastAPI Server

Runs next to the editor and exposes pending changes, TFVC operations,
editor signals and diagnostics for one workspace over local HTTP.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tfvcsync import __version__
from tfvcsync.core.context import ScmContext
from tfvcsync.errors import CommandError, ConfigurationError, TfvcError, WorkspaceError

from .routes import diagnostics, events, pending, scm, settings

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    CommandError: 502,
    ConfigurationError: 400,
    WorkspaceError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the workspace context on startup and dispose it on exit."""
    context = getattr(app.state, "context", None)
    if context is None:
        context = ScmContext(getattr(app.state, "workspace_root", None))
        app.state.context = context
    await context.start()
    yield
    await context.shutdown()


def _status_for(exc: TfvcError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 500


async def tfvc_error_handler(request: Request, exc: TfvcError) -> JSONResponse:
    status = _status_for(exc)
    logger.warning("%s %s failed (%d): %s", request.method, request.url.path, status, exc.message)
    return JSONResponse(status_code=status, content={"detail": exc.message, "error": exc.to_dict()})


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app(workspace_root: Path | None = None, context: ScmContext | None = None) -> FastAPI:
    app = FastAPI(
        title="tfvcsync Backend",
        description="TFVC integration sidecar for editors",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.workspace_root = workspace_root
    app.state.context = context

    # Local editor front-ends only
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TfvcError, tfvc_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    app.include_router(pending.router, prefix="/api/pending", tags=["pending"])
    app.include_router(scm.router, prefix="/api/scm", tags=["scm"])
    app.include_router(events.router, prefix="/api/events", tags=["events"])
    app.include_router(diagnostics.router, prefix="/api/diagnostics", tags=["diagnostics"])
    app.include_router(settings.router, prefix="/api/settings", tags=["settings"])

    @app.get("/health")
    def health():
        """Health check endpoint"""
        return {"status": "ok"}

    @app.get("/")
    def root():
        """Root endpoint with API info"""
        return {
            "name": "tfvcsync Backend",
            "version": __version__,
            "docs": "/docs",
        }

    return app


def main():
    """Main entry point for the sidecar"""
    parser = argparse.ArgumentParser(description="tfvcsync Backend Server")
    parser.add_argument(
        "--port",
        type=int,
        default=9877,
        help="Port to run the server on (default: 9877)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=None,
        help="Workspace root (default: $TFVCSYNC_WORKSPACE)",
    )
    args = parser.parse_args()

    print(f"Starting tfvcsync backend on {args.host}:{args.port}")

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["access"]["fmt"] = "%(asctime)s %(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s %(levelprefix)s %(message)s"
    log_config["formatters"]["access"]["datefmt"] = "%H:%M:%S"
    log_config["formatters"]["default"]["datefmt"] = "%H:%M:%S"

    # One worker: the context holds the in-memory fileset for the workspace.
    uvicorn.run(create_app(args.workspace), host=args.host, port=args.port, log_level="info", log_config=log_config)


if __name__ == "__main__":
    main()
