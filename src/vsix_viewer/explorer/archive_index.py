"""Loading a single VSIX archive into a navigable tree."""

import io
import logging
import time
import uuid
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Set

import aiofiles

from vsix_viewer.common import segment_path, icon_type_for
from .errors import ReadError, ParseError
from .tree import TreeNode, insert, sort_tree

logger = logging.getLogger(__name__)

# Low byte of ZipInfo.external_attr holds the MS-DOS attributes
MSDOS_ATTR_MASK = 0xFF
MSDOS_DIRECTORY_ATTR = 0x10


def entry_is_directory(info: zipfile.ZipInfo) -> bool:
    """Return the entry's own directory flag.

    An entry is a directory when its MS-DOS directory attribute is set or its
    name ends in a slash. Disagreements between the two are logged.
    """
    by_name = info.filename.endswith("/")
    dos_attrs = info.external_attr & MSDOS_ATTR_MASK
    flagged = bool(dos_attrs & MSDOS_DIRECTORY_ATTR)
    if dos_attrs and flagged != by_name:
        logger.debug(
            f"Directory flag of '{info.filename}' disagrees with its name, "
            f"treating it as a directory"
        )
    return flagged or by_name


@dataclass
class ParseStats:
    """Statistics collected while building an archive's tree."""
    entry_count: int = 0
    file_count: int = 0
    directory_count: int = 0
    extensions: Set[str] = field(default_factory=set)
    parse_seconds: float = 0.0

    def as_log_fields(self) -> dict:
        return {
            "entry_count": self.entry_count,
            "file_count": self.file_count,
            "directory_count": self.directory_count,
            "file_extensions": ",".join(sorted(self.extensions)),
            "parse_seconds": round(self.parse_seconds, 4),
        }


def build_tree(handle: zipfile.ZipFile, root: TreeNode) -> ParseStats:
    """Insert every entry of ``handle`` below ``root`` and sort the result.

    Entries are processed in the archive's own enumeration order.
    """
    stats = ParseStats()
    started = time.perf_counter()

    for info in handle.infolist():
        is_directory = entry_is_directory(info)
        stats.entry_count += 1
        if is_directory:
            stats.directory_count += 1
        else:
            stats.file_count += 1
            ext = icon_type_for(info.filename.rsplit("/", 1)[-1])
            if ext:
                stats.extensions.add(ext)

        logger.debug(f"Entry {info.filename}")
        insert(
            root,
            segment_path(info.filename),
            is_directory,
            info.filename,
            size=0 if is_directory else info.file_size,
        )

    sort_tree(root)
    stats.parse_seconds = time.perf_counter() - started
    return stats


class ArchiveIndex:
    """One loaded archive: its tree root plus the open archive handle.

    Instances are only ever produced by ``load``, fully built. The tree is not
    mutated after construction and the handle is only read from.
    """

    def __init__(
        self,
        source_path: Path,
        root: TreeNode,
        archive_handle: zipfile.ZipFile,
        archive_id: str,
        stats: ParseStats,
    ) -> None:
        self.source_path = source_path
        self.root = root
        self.archive_handle = archive_handle
        self.archive_id = archive_id
        self.stats = stats

    def __repr__(self) -> str:
        return f"ArchiveIndex({str(self.source_path)!r}, id={self.archive_id})"

    @property
    def name(self) -> str:
        return self.source_path.name

    @classmethod
    async def load(cls, path: Path | str) -> "ArchiveIndex":
        """Read, parse and index one archive.

        Args:
            path: Archive file path

        Returns:
            Fully built ArchiveIndex

        Raises:
            ReadError: If the file does not exist or cannot be read
            ParseError: If the bytes are not a valid zip archive
        """
        source_path = Path(path).absolute()
        logger.info(f"Loading archive {source_path}")

        try:
            async with aiofiles.open(source_path, 'rb') as f:
                data = await f.read()
        except OSError as e:
            raise ReadError(
                f"Cannot read archive {source_path}: {e}", path=str(source_path)
            ) from e

        try:
            handle = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, EOFError) as e:
            raise ParseError(
                f"Not a valid archive {source_path}: {e}", path=str(source_path)
            ) from e

        archive_id = uuid.uuid4().hex[:12]
        root = TreeNode.root(source_path.name, archive_id=archive_id, tooltip=str(source_path))

        try:
            stats = build_tree(handle, root)
        except Exception:
            handle.close()
            raise

        logger.info(
            f"Indexed {source_path.name}: {stats.entry_count} entries",
            extra={"extra_fields": {"archive": str(source_path), **stats.as_log_fields()}},
        )
        return cls(source_path, root, handle, archive_id, stats)

    def close(self) -> None:
        """Release the archive handle."""
        self.archive_handle.close()
