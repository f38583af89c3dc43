"""FastAPI server setup."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from vsix_viewer import __version__
from vsix_viewer.explorer import ArchiveWorkspace, ViewerContext

logger = logging.getLogger(__name__)


def create_app(context: ViewerContext, workspace: Optional[ArchiveWorkspace] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        context: Shared viewer context (registry, cache, icons)
        workspace: Optional tracked path set, loaded at startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            if workspace is not None:
                await workspace.refresh()
            yield
        finally:
            context.close()

    app = FastAPI(
        title="VSIX Viewer",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.workspace = workspace

    from .routes import archives, health

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(archives.router, prefix="/api", tags=["archives"])

    logger.info(
        "FastAPI application created",
        extra={"extra_fields": {"version": __version__}},
    )

    return app
