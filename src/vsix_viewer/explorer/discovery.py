"""Discovery of archive files and the tracked workspace path set."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .registry import ArchiveRegistry, BatchResult, registry_key

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_EXTENSIONS = (".vsix",)


@dataclass
class ArchiveInfo:
    """Information about a discovered archive."""
    path: Path
    size_bytes: int
    name: str

    def __str__(self) -> str:
        size_kb = self.size_bytes / 1024
        return f"{self.name} ({size_kb:.1f} KB)"


class ArchiveDiscovery:
    """Discovers archives in a source directory."""

    def __init__(self, source_dir: Path, extensions: Iterable[str] = DEFAULT_ARCHIVE_EXTENSIONS):
        """Initialize archive discovery.

        Args:
            source_dir: Directory to search for archives
            extensions: File suffixes treated as archives (case-insensitive)
        """
        self.source_dir = Path(source_dir)
        if not self.source_dir.exists():
            raise FileNotFoundError(f"Source directory not found: {source_dir}")
        if not self.source_dir.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source_dir}")
        self.extensions = tuple(ext.lower() for ext in extensions)

    def discover(self, recursive: bool = True) -> List[ArchiveInfo]:
        """Discover all archives in the source directory.

        Args:
            recursive: Whether to search subdirectories

        Returns:
            Discovered archives sorted by path
        """
        archives = []
        pattern = "**/*" if recursive else "*"

        for file_path in self.source_dir.glob(pattern):
            if not file_path.is_file():
                continue
            if not file_path.name.lower().endswith(self.extensions):
                continue

            archive_info = ArchiveInfo(
                path=file_path,
                size_bytes=file_path.stat().st_size,
                name=file_path.name,
            )
            archives.append(archive_info)
            logger.debug(f"Discovered archive: {archive_info}")

        archives.sort(key=lambda a: str(a.path))

        logger.info(f"Discovered {len(archives)} archive(s) in {self.source_dir}")
        return archives


class ArchiveWorkspace:
    """The set of archive paths being tracked.

    Every change to the set reloads the registry with the full current set,
    matching the registry's replace-wholesale semantics.
    """

    def __init__(self, registry: ArchiveRegistry, paths: Iterable[Path | str] = ()) -> None:
        self._registry = registry
        self._paths: Dict[str, Path] = {}
        for path in paths:
            self._paths.setdefault(registry_key(path), Path(path))

    @property
    def paths(self) -> List[Path]:
        return list(self._paths.values())

    async def refresh(self) -> BatchResult:
        return await self._registry.load_all(self.paths)

    async def add(self, *paths: Path | str) -> BatchResult:
        for path in paths:
            self._paths.setdefault(registry_key(path), Path(path))
        return await self.refresh()

    async def remove(self, *paths: Path | str) -> BatchResult:
        for path in paths:
            self._paths.pop(registry_key(path), None)
        return await self.refresh()

    async def scan(self, discovery: ArchiveDiscovery, recursive: bool = True) -> BatchResult:
        """Replace the tracked set with everything ``discovery`` finds."""
        self._paths = {}
        for archive in discovery.discover(recursive=recursive):
            self._paths.setdefault(registry_key(archive.path), archive.path)
        return await self.refresh()

    def tracks(self, path: Path | str) -> bool:
        return registry_key(path) in self._paths


def expand_archive_paths(paths: Iterable[Path | str], recursive: bool = True,
                         extensions: Optional[Iterable[str]] = None) -> List[Path]:
    """Expand directories among ``paths`` into the archives they contain."""
    result: List[Path] = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            discovery = ArchiveDiscovery(path, extensions or DEFAULT_ARCHIVE_EXTENSIONS)
            result.extend(archive.path for archive in discovery.discover(recursive=recursive))
        else:
            result.append(path)
    return result
