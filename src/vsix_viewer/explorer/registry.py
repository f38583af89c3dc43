"""Tracking of every currently loaded archive."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from vsix_viewer.common import normalize_path
from .archive_index import ArchiveIndex
from .content_cache import extract
from .errors import ArchiveError, EntryNotFoundError, OwnerNotFoundError, classify_error
from .tree import TreeNode, contains

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


def registry_key(path: Path | str) -> str:
    """Key under which an archive path is tracked."""
    return normalize_path(Path(path).absolute())


@dataclass
class BatchResult:
    """Outcome of one ``load_all`` batch.

    Attributes:
        loaded: Archives that were indexed, in request order
        failed: Registry key -> error for archives that could not be loaded
        applied: False if a newer batch superseded this one before it finished
    """
    loaded: List[ArchiveIndex] = field(default_factory=list)
    failed: Dict[str, ArchiveError] = field(default_factory=dict)
    applied: bool = True


class ArchiveRegistry:
    """Owns the loaded ArchiveIndex instances, keyed by archive path.

    The mapping is replaced wholesale by every ``load_all`` batch, never
    patched, and observers are notified exactly once per applied batch.
    """

    def __init__(self) -> None:
        self._indexes: Dict[str, ArchiveIndex] = {}
        self._by_id: Dict[str, ArchiveIndex] = {}
        self._listeners: List[ChangeListener] = []
        self._generation = 0

    def __len__(self) -> int:
        return len(self._indexes)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return registry_key(path) in self._indexes

    @property
    def indexes(self) -> List[ArchiveIndex]:
        return list(self._indexes.values())

    @property
    def roots(self) -> List[TreeNode]:
        """Tree roots of all tracked archives, in load order."""
        return [index.root for index in self._indexes.values()]

    @property
    def paths(self) -> List[Path]:
        return [index.source_path for index in self._indexes.values()]

    def get(self, path: Path | str) -> Optional[ArchiveIndex]:
        return self._indexes.get(registry_key(path))

    def get_by_id(self, archive_id: str) -> Optional[ArchiveIndex]:
        return self._by_id.get(archive_id)

    def on_did_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to tree changes. Returns a callable that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Tree change listener failed")

    async def _load_one(self, path: Path) -> ArchiveIndex | ArchiveError:
        try:
            return await ArchiveIndex.load(path)
        except ArchiveError as e:
            logger.error(
                f"Failed to load archive {path}: {e}",
                extra={"extra_fields": {
                    "archive": str(path),
                    "error_type": classify_error(e),
                }},
            )
            return e
        except Exception as e:
            logger.exception(f"Unexpected error loading archive {path}")
            return ArchiveError(f"Unexpected error loading {path}: {e}", path=str(path))

    async def load_all(self, paths: Iterable[Path | str]) -> BatchResult:
        """Load a batch of archives and replace the registry contents.

        Archives are loaded concurrently. An archive that fails to load is
        logged and left out; the others are still tracked. If another batch
        was started while this one was running, this batch's results are
        discarded and the registry is left to the newer batch.

        Args:
            paths: The full set of archive paths to track

        Returns:
            BatchResult describing what was loaded and what failed
        """
        self._generation += 1
        generation = self._generation

        unique: Dict[str, Path] = {}
        for path in paths:
            unique.setdefault(registry_key(path), Path(path))

        logger.info(f"Loading {len(unique)} archive(s)")
        outcomes = await asyncio.gather(*(self._load_one(path) for path in unique.values()))

        result = BatchResult()
        new_indexes: Dict[str, ArchiveIndex] = {}
        for key, outcome in zip(unique.keys(), outcomes):
            if isinstance(outcome, ArchiveIndex):
                new_indexes[key] = outcome
                result.loaded.append(outcome)
            else:
                result.failed[key] = outcome

        if generation != self._generation:
            logger.info("Discarding results of a superseded archive batch")
            for index in result.loaded:
                index.close()
            result.applied = False
            return result

        self._indexes = new_indexes
        self._by_id = {index.archive_id: index for index in new_indexes.values()}

        logger.info(
            f"Archive batch complete: {len(result.loaded)} loaded, {len(result.failed)} failed",
            extra={"extra_fields": {
                "loaded": len(result.loaded),
                "failed": len(result.failed),
            }},
        )
        self._notify()
        return result

    def find_owning_archive(self, node: TreeNode) -> Optional[ArchiveIndex]:
        """Return the tracked archive whose tree contains ``node``.

        Nodes built by an ArchiveIndex carry its identifier, so the lookup is a
        dictionary read; a node from an archive that is no longer tracked (or
        was reloaded since) maps to nothing. Untagged nodes fall back to a
        reachability search from every root.
        """
        if node.archive_id:
            return self._by_id.get(node.archive_id)

        for index in self._indexes.values():
            if contains(index.root, node):
                return index
        return None

    async def resolve_content(self, node: TreeNode) -> bytes:
        """Extract the bytes of a file node from its owning archive.

        Raises:
            OwnerNotFoundError: If no tracked archive owns the node
            EntryNotFoundError: If the node is not a file or its entry is missing
        """
        index = self.find_owning_archive(node)
        if index is None:
            raise OwnerNotFoundError(
                f"No tracked archive contains '{node.label}'", label=node.label
            )
        if not node.full_path:
            raise EntryNotFoundError(
                f"'{node.label}' has no entry content", label=node.label
            )
        return await extract(index.archive_handle, node.full_path)

    def clear(self) -> None:
        """Stop tracking every archive and release their handles."""
        self._generation += 1
        for index in self._indexes.values():
            index.close()
        self._indexes = {}
        self._by_id = {}
        self._notify()
