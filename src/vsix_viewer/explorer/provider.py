"""Presentation adapter: tree children and per-node display attributes."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .icons import IconAsset, IconAssetLocator, IconResolver
from .registry import ArchiveRegistry
from .tree import ROOT_ICON_TYPE, TreeNode

CONTEXT_VALUE = "vsixItem"


class CollapsibleState(int, Enum):
    """How a node is shown in a tree widget."""

    NONE = 0
    COLLAPSED = 1
    EXPANDED = 2


@dataclass(frozen=True)
class TreeItem:
    """Display attributes of one tree node."""
    label: str
    icon: str
    collapsible_state: CollapsibleState
    tooltip: str
    is_directory: bool
    description: Optional[str] = None
    icon_path: Optional[IconAsset] = None
    context_value: str = CONTEXT_VALUE


class TreeDataProvider:
    """Answers ``get_children`` / ``get_tree_item`` queries for a tree widget."""

    def __init__(
        self,
        registry: ArchiveRegistry,
        icons: IconResolver,
        assets: Optional[IconAssetLocator] = None,
        show_count_badge: bool = False,
    ) -> None:
        self._registry = registry
        self._icons = icons
        self._assets = assets
        self.show_count_badge = show_count_badge

    def on_did_change_tree_data(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self._registry.on_did_change(listener)

    def get_children(self, node: Optional[TreeNode] = None) -> List[TreeNode]:
        if node is None:
            return self._registry.roots
        return list(node.children)

    def get_tree_item(self, node: TreeNode) -> TreeItem:
        if node.is_leaf:
            state = CollapsibleState.NONE
        elif node.icon_type == ROOT_ICON_TYPE:
            state = CollapsibleState.EXPANDED
        else:
            state = CollapsibleState.COLLAPSED

        description = None
        if self.show_count_badge and node.is_directory:
            description = str(len(node.children))

        icon = self._icons.resolve_icon(node.icon_type)
        icon_path = self._assets.locate(icon) if self._assets is not None else None

        return TreeItem(
            label=node.label,
            icon=icon,
            collapsible_state=state,
            tooltip=node.tooltip or node.label,
            is_directory=node.is_directory,
            description=description,
            icon_path=icon_path,
        )

    def _item_dict(self, node: TreeNode) -> Dict[str, Any]:
        item = self.get_tree_item(node)
        data: Dict[str, Any] = {
            "label": item.label,
            "icon": item.icon,
            "is_directory": item.is_directory,
            "collapsible_state": item.collapsible_state.name.lower(),
            "tooltip": item.tooltip,
        }
        if item.description is not None:
            data["description"] = item.description
        if node.is_directory:
            data["children"] = []
        else:
            data["full_path"] = node.full_path
            data["size"] = node.size
        return data

    def to_dict(self, root: TreeNode) -> Dict[str, Any]:
        """Serialize a subtree into nested dictionaries of tree items."""
        result = self._item_dict(root)
        stack = [(root, result)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                child_out = self._item_dict(child)
                out["children"].append(child_out)
                if child.is_directory:
                    stack.append((child, child_out))
        return result
