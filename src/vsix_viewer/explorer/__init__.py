"""Browse VSIX archives as trees without unpacking them."""

from .archive_index import ArchiveIndex, ParseStats
from .config import IconGroup, ViewerConfig, ViewerSettings
from .content_cache import ContentCache, ContentView, extract, make_view_key
from .context import ViewerContext
from .discovery import ArchiveDiscovery, ArchiveWorkspace
from .errors import (
    ArchiveError, ReadError, ParseError, EntryNotFoundError, OwnerNotFoundError
)
from .icons import IconResolver, IconAssetLocator
from .provider import TreeDataProvider, TreeItem, CollapsibleState
from .registry import ArchiveRegistry, BatchResult
from .tree import TreeNode, insert, sort_tree, find_node

__all__ = [
    'ArchiveIndex',
    'ParseStats',
    'IconGroup',
    'ViewerConfig',
    'ViewerSettings',
    'ContentCache',
    'ContentView',
    'extract',
    'make_view_key',
    'ViewerContext',
    'ArchiveDiscovery',
    'ArchiveWorkspace',
    'ArchiveError',
    'ReadError',
    'ParseError',
    'EntryNotFoundError',
    'OwnerNotFoundError',
    'IconResolver',
    'IconAssetLocator',
    'TreeDataProvider',
    'TreeItem',
    'CollapsibleState',
    'ArchiveRegistry',
    'BatchResult',
    'TreeNode',
    'insert',
    'sort_tree',
    'find_node',
]
