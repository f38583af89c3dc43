"""Archive, tree and content view endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from vsix_viewer.explorer import BatchResult, ViewerContext, find_node

router = APIRouter()
logger = logging.getLogger(__name__)


class ViewRequest(BaseModel):
    """Request to open a content view of one archive entry."""

    archive_id: str = Field(description="Identifier from GET /archives")
    entry_path: str = Field(description="Full entry path inside the archive")
    key: Optional[str] = Field(default=None, description="Caller-chosen view key")


def _context(request: Request) -> ViewerContext:
    return request.app.state.context


def _batch_summary(result: BatchResult) -> dict:
    return {
        "applied": result.applied,
        "loaded": [str(index.source_path) for index in result.loaded],
        "failed": {path: error.message for path, error in result.failed.items()},
    }


@router.get("/archives")
async def list_archives(request: Request):
    """List tracked archives."""
    context = _context(request)
    return [
        {
            "id": index.archive_id,
            "name": index.name,
            "path": str(index.source_path),
            "entry_count": index.stats.entry_count,
            "file_count": index.stats.file_count,
        }
        for index in context.registry.indexes
    ]


@router.get("/archives/{archive_id}/tree")
async def get_archive_tree(archive_id: str, request: Request):
    """Return an archive's full tree of display items."""
    context = _context(request)
    index = context.registry.get_by_id(archive_id)
    if index is None:
        raise HTTPException(status_code=404, detail=f"Unknown archive: {archive_id}")
    return context.provider.to_dict(index.root)


@router.post("/reload")
async def reload_archives(request: Request):
    """Reload every tracked archive."""
    context = _context(request)
    workspace = request.app.state.workspace
    if workspace is not None:
        result = await workspace.refresh()
    else:
        result = await context.registry.load_all(context.registry.paths)
    return _batch_summary(result)


@router.post("/views")
async def open_view(body: ViewRequest, request: Request):
    """Extract an entry and keep it open under a view key."""
    context = _context(request)
    index = context.registry.get_by_id(body.archive_id)
    if index is None:
        raise HTTPException(status_code=404, detail=f"Unknown archive: {body.archive_id}")

    node = find_node(index.root, body.entry_path)
    if node is None or node.is_directory:
        raise HTTPException(status_code=404, detail=f"No file entry: {body.entry_path}")

    view = await context.cache.open_view(node, key=body.key)
    if view is None and body.key is not None and body.key in context.cache:
        raise HTTPException(status_code=409, detail=f"View key already in use: {body.key}")
    if view is None:
        raise HTTPException(status_code=404, detail=f"No content for: {body.entry_path}")

    return {
        "key": view.key,
        "archive_path": str(view.archive_path),
        "entry_path": view.entry_path,
        "media_type": view.media_type,
        "size": view.size,
    }


@router.get("/views/{key}")
async def read_view(key: str, request: Request):
    """Return the raw bytes of an open view."""
    view = _context(request).cache.get(key)
    if view is None:
        raise HTTPException(status_code=404, detail=f"View not open: {key}")
    return Response(content=view.data, media_type=view.media_type)


@router.delete("/views/{key}")
async def close_view(key: str, request: Request):
    """Report a view closed, releasing its buffer."""
    if not _context(request).cache.close_view(key):
        raise HTTPException(status_code=404, detail=f"View not open: {key}")
    return {"closed": key}
