"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request

from vsix_viewer import __version__

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    context = request.app.state.context

    logger.debug("Health check requested")

    return {
        "status": "healthy",
        "version": __version__,
        "archives": len(context.registry),
        "open_views": len(context.cache),
    }
