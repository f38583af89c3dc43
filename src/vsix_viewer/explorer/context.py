"""Explicit application context wiring the explorer components together."""

from dataclasses import dataclass
from typing import Optional

from .config import ViewerConfig
from .content_cache import ContentCache
from .icons import IconAssetLocator, IconResolver
from .provider import TreeDataProvider
from .registry import ArchiveRegistry


@dataclass
class ViewerContext:
    """Everything a host needs, constructed once at startup and passed around."""
    config: ViewerConfig
    registry: ArchiveRegistry
    cache: ContentCache
    icons: IconResolver
    provider: TreeDataProvider
    assets: Optional[IconAssetLocator] = None

    @classmethod
    def create(cls, config: Optional[ViewerConfig] = None) -> "ViewerContext":
        config = config or ViewerConfig()

        assets = None
        if config.viewer.images_dir:
            assets = IconAssetLocator(config.viewer.images_dir)

        registry = ArchiveRegistry()
        icons = IconResolver(
            config.icons,
            asset_exists=assets.exists if assets is not None else None,
        )
        provider = TreeDataProvider(
            registry,
            icons,
            assets=assets,
            show_count_badge=config.viewer.show_count_badge,
        )
        return cls(
            config=config,
            registry=registry,
            cache=ContentCache(registry),
            icons=icons,
            provider=provider,
            assets=assets,
        )

    def close(self) -> None:
        self.cache.clear()
        self.registry.clear()
