"""Directory/file tree built from an archive's flat entry list.

Archive entries are inserted one path at a time. Directories are shared
between entries (``a/b.txt`` and ``a/c.txt`` live under one ``a`` node), file
nodes remember the full entry path they were created from so their content
can be extracted later, and every node is stamped with the identifier of the
archive that owns it.

Insertion and sorting are iterative: archive entries can be arbitrarily deep
and a malicious archive must not be able to exhaust the interpreter stack.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from vsix_viewer.common import icon_type_for, segment_path

logger = logging.getLogger(__name__)

DIRECTORY_ICON_TYPE = "dir"
ROOT_ICON_TYPE = "vsix"


@dataclass(eq=False)
class TreeNode:
    """One path segment (directory or file) within one archive's hierarchy.

    Nodes compare by identity: two archives may contain identically named
    entries and they must never be mistaken for one another.

    Attributes:
        label: Display name, the path component at this depth
        is_directory: Directories may have children, files never do
        children: Ordered children, unique by label
        full_path: Original entry path, set on file nodes only
        icon_type: "dir", "vsix" (root) or the file's lowercase extension
        size: Uncompressed size in bytes (files only)
        archive_id: Identifier of the owning archive index
        tooltip: Hover text shown by presentation layers
    """
    label: str
    is_directory: bool = False
    children: List["TreeNode"] = field(default_factory=list)
    full_path: str = ""
    icon_type: str = ""
    size: int = 0
    archive_id: str = ""
    tooltip: str = ""
    _child_index: Dict[str, "TreeNode"] = field(default_factory=dict, repr=False, init=False)

    def __post_init__(self) -> None:
        for child in self.children:
            self._child_index.setdefault(child.label, child)

    @classmethod
    def directory(cls, label: str, archive_id: str = "") -> "TreeNode":
        return cls(
            label=label,
            is_directory=True,
            icon_type=DIRECTORY_ICON_TYPE,
            archive_id=archive_id,
            tooltip=label,
        )

    @classmethod
    def file(cls, label: str, archive_id: str = "") -> "TreeNode":
        return cls(
            label=label,
            is_directory=False,
            icon_type=icon_type_for(label),
            archive_id=archive_id,
            tooltip=label,
        )

    @classmethod
    def root(cls, label: str, archive_id: str = "", tooltip: str = "") -> "TreeNode":
        """Create the synthetic root node of an archive."""
        return cls(
            label=label,
            is_directory=True,
            icon_type=ROOT_ICON_TYPE,
            archive_id=archive_id,
            tooltip=tooltip or label,
        )

    @property
    def is_leaf(self) -> bool:
        return not self.is_directory

    def find_child(self, label: str) -> Optional["TreeNode"]:
        """Return the child with exactly this label, if any."""
        return self._child_index.get(label)

    def add_child(self, child: "TreeNode") -> "TreeNode":
        if self.is_leaf:
            raise ValueError(f"Cannot add children to file node {self.label!r}")
        if child.label in self._child_index:
            raise ValueError(f"Duplicate child {child.label!r} under {self.label!r}")
        self.children.append(child)
        self._child_index[child.label] = child
        return child

    def _promote_to_directory(self) -> None:
        self.is_directory = True
        self.icon_type = DIRECTORY_ICON_TYPE
        self.full_path = ""
        self.size = 0
        self.tooltip = self.label


def insert(
    root: TreeNode,
    segments: List[str],
    is_directory: bool,
    full_path: str,
    size: int = 0,
) -> Optional[TreeNode]:
    """Insert one segmented entry path below ``root``.

    Existing children are always looked up by label before anything is
    created, so inserting the same path twice (duplicate entries, or a
    directory entry followed by its files) reuses the nodes already there.

    Intermediate segments always become directories. The final segment
    becomes a file only when ``is_directory`` is false, in which case its
    ``full_path`` and ``size`` are recorded.

    A path that has to descend through a node created earlier as a file
    (entries ``a`` then ``a/b``) promotes that node to a directory so a leaf
    never gains children.

    Args:
        root: Node to insert below (normally the archive root)
        segments: Path components, as returned by ``segment_path``
        is_directory: The entry's own directory flag
        full_path: Original entry path
        size: Uncompressed entry size

    Returns:
        The node for the final segment, or None for an empty segment list
    """
    if not segments:
        return None

    node = root
    last = len(segments) - 1

    for depth, segment in enumerate(segments):
        terminal = depth == last
        wants_directory = is_directory or not terminal
        child = node.find_child(segment)

        if child is None:
            if wants_directory:
                child = TreeNode.directory(segment, archive_id=root.archive_id)
            else:
                child = TreeNode.file(segment, archive_id=root.archive_id)
            node.add_child(child)
        elif wants_directory and child.is_leaf:
            logger.warning(
                f"Entry '{full_path}' needs '{segment}' as a directory, "
                f"promoting the existing file node"
            )
            child._promote_to_directory()

        node = child

    if node.is_leaf:
        node.full_path = full_path
        node.size = size
        node.tooltip = full_path

    return node


def sort_tree(root: TreeNode) -> TreeNode:
    """Order every directory's children: directories first, then files.

    Within each group the existing (archive enumeration) order is kept. The
    sort is stable, so running it again on a sorted tree changes nothing.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            continue
        node.children.sort(key=lambda child: child.is_leaf)
        stack.extend(node.children)
    return root


def walk(root: TreeNode) -> Iterator[TreeNode]:
    """Yield ``root`` and all its descendants in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def contains(root: TreeNode, target: TreeNode) -> bool:
    """Return True if ``target`` (by identity) is reachable from ``root``."""
    return any(node is target for node in walk(root))


def find_node(root: TreeNode, entry_path: str) -> Optional[TreeNode]:
    """Follow an entry path's segments down from ``root``.

    Returns None if any segment is missing. An empty path returns ``root``.
    """
    node = root
    for segment in segment_path(entry_path):
        node = node.find_child(segment)
        if node is None:
            return None
    return node

