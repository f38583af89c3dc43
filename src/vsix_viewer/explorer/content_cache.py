"""On-demand extraction of entry contents and the open-view cache.

Extraction itself is pure: it reads one entry from an archive handle and
returns its bytes, every time. Buffers are only kept for views a consumer has
opened, and are released when that consumer reports the view closed. There
is no expiry and no size-based eviction.
"""

import asyncio
import hashlib
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

import filetype

from vsix_viewer.common import normalize_path
from .errors import ArchiveError, EntryNotFoundError, ParseError, classify_error
from .tree import TreeNode

if TYPE_CHECKING:
    from .registry import ArchiveRegistry

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"
TEXT_MEDIA_TYPE = "text/plain"


async def extract(archive_handle: zipfile.ZipFile, full_path: str) -> bytes:
    """Decompress one entry, looked up by its exact full path.

    Decompression runs in a worker thread so the event loop is not blocked.

    Raises:
        EntryNotFoundError: If the archive has no entry with this path
        ParseError: If the entry cannot be decompressed
    """
    try:
        info = archive_handle.getinfo(full_path)
    except KeyError as e:
        raise EntryNotFoundError(f"Entry not found: {full_path}", entry=full_path) from e

    try:
        return await asyncio.to_thread(archive_handle.read, info)
    except (zipfile.BadZipFile, RuntimeError, NotImplementedError, ValueError, EOFError) as e:
        raise ParseError(f"Cannot decompress {full_path}: {e}", entry=full_path) from e


def make_view_key(archive_path: Path | str, entry_path: str) -> str:
    """Derive a stable, opaque view key from an archive path and an entry path."""
    raw = f"{normalize_path(archive_path)}\0{entry_path}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def guess_media_type(data: bytes) -> str:
    """Guess a MIME type from magic bytes, falling back to text or binary."""
    kind = filetype.guess(data)
    if kind is not None:
        return kind.mime
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return DEFAULT_MEDIA_TYPE
    return TEXT_MEDIA_TYPE


@dataclass(frozen=True)
class ContentView:
    """Bytes of one entry, held for as long as a consumer keeps the view open."""
    key: str
    archive_path: Path
    entry_path: str
    data: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class ContentCache:
    """Maps open view keys to extracted byte buffers."""

    def __init__(self, registry: "ArchiveRegistry") -> None:
        self._registry = registry
        self._views: Dict[str, ContentView] = {}

    def __len__(self) -> int:
        return len(self._views)

    def __contains__(self, key: object) -> bool:
        return key in self._views

    def keys(self) -> List[str]:
        return list(self._views)

    def get(self, key: str) -> Optional[ContentView]:
        return self._views.get(key)

    async def open_view(self, node: TreeNode, key: Optional[str] = None) -> Optional[ContentView]:
        """Extract a file node's content and keep it under ``key``.

        The key defaults to one derived from the owning archive and the entry
        path. Opening a key that is already open for the same entry returns
        the cached view.

        Returns:
            The view, or None when the node has no content to show (its
            archive is no longer tracked, it is a directory, or the entry is
            missing or unreadable) or the key is open for a different entry
        """
        index = self._registry.find_owning_archive(node)
        if index is None:
            logger.warning(f"Refusing to open '{node.label}': not part of any tracked archive")
            return None

        if key is None:
            key = make_view_key(index.source_path, node.full_path)

        cached = self._views.get(key)
        if cached is not None:
            if cached.archive_path != index.source_path or cached.entry_path != node.full_path:
                logger.warning(
                    f"Refusing to open '{node.full_path}': view key {key} is already "
                    f"open for '{cached.entry_path}'",
                    extra={"extra_fields": {
                        "archive": str(index.source_path),
                        "open_archive": str(cached.archive_path),
                    }},
                )
                return None
            return cached

        try:
            data = await self._registry.resolve_content(node)
        except ArchiveError as e:
            logger.warning(
                f"No content for '{node.full_path or node.label}': {e}",
                extra={"extra_fields": {
                    "archive": str(index.source_path),
                    "error_type": classify_error(e),
                }},
            )
            return None

        view = ContentView(
            key=key,
            archive_path=index.source_path,
            entry_path=node.full_path,
            data=data,
            media_type=guess_media_type(data),
        )
        view = self._views.setdefault(key, view)
        logger.debug(f"Opened view {key} ({view.size} bytes) for {node.full_path}")
        return view

    def close_view(self, key: str) -> bool:
        """Release the buffer of a closed view.

        Returns:
            True if the key was open, False otherwise
        """
        view = self._views.pop(key, None)
        if view is None:
            return False
        logger.debug(f"Closed view {key} for {view.entry_path}")
        return True

    def clear(self) -> None:
        self._views.clear()
