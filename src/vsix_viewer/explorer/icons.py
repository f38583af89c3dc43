"""Icon resolution for tree nodes."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

from .config import IconGroup

logger = logging.getLogger(__name__)

FOLDER_ICON = "folder"
FILE_ICON = "file"
VSIX_ICON = "vsix"

BUILTIN_ICON_GROUPS: Dict[str, tuple[str, ...]] = {
    "image": ("png", "gif", "jpg", "jpeg", "bmp"),
    "markdown": ("md", "markdown"),
    "git": ("gitignore",),
    "text": ("txt",),
    "yaml": ("yml", "yaml"),
}


class IconResolver:
    """Maps an icon type ("dir", "vsix" or an extension) to an icon group.

    Resolution order: the configured table, then the built-in defaults for
    directories and the archive root, then the built-in extension table,
    then an asset named after the type (when an asset probe is given), and
    finally the generic file icon.
    """

    def __init__(
        self,
        groups: Optional[Mapping[str, IconGroup]] = None,
        asset_exists: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self._configured: Dict[str, str] = {}
        for name, group in (groups or {}).items():
            for ext in group.extensions:
                key = ext.lower()
                if key in self._configured and self._configured[key] != group.icon:
                    logger.warning(
                        f"Extension '{key}' is mapped by more than one icon group, "
                        f"keeping '{self._configured[key]}' and ignoring '{name}'"
                    )
                    continue
                self._configured[key] = group.icon

        self._builtin = {
            ext: name for name, extensions in BUILTIN_ICON_GROUPS.items() for ext in extensions
        }
        self._asset_exists = asset_exists

    def resolve_icon(self, icon_type: str) -> str:
        key = (icon_type or "").lower()

        configured = self._configured.get(key)
        if configured:
            return configured

        if key == "dir":
            return FOLDER_ICON
        if key == "vsix":
            return VSIX_ICON

        builtin = self._builtin.get(key)
        if builtin:
            return builtin

        if key and self._asset_exists is not None and self._asset_exists(key):
            return key

        return FILE_ICON


@dataclass(frozen=True)
class IconAsset:
    """Themed asset pair for one icon group."""
    light: Path
    dark: Path


class IconAssetLocator:
    """Finds ``light/<name>.svg`` and ``dark/<name>.svg`` under an images directory.

    A missing asset is not an error: ``locate`` returns None and the caller
    shows no icon.
    """

    def __init__(self, images_dir: Path | str) -> None:
        self.images_dir = Path(images_dir)
        self._cache: Dict[str, Optional[IconAsset]] = {}

    def locate(self, name: str) -> Optional[IconAsset]:
        if name not in self._cache:
            light = self.images_dir / "light" / f"{name}.svg"
            dark = self.images_dir / "dark" / f"{name}.svg"
            if light.is_file() and dark.is_file():
                self._cache[name] = IconAsset(light=light, dark=dark)
            else:
                self._cache[name] = None
        return self._cache[name]

    def exists(self, name: str) -> bool:
        return self.locate(name) is not None
