"""Tests for icon resolution."""

import logging

import pytest

from vsix_viewer.explorer.config import IconGroup
from vsix_viewer.explorer.icons import (
    FILE_ICON,
    FOLDER_ICON,
    VSIX_ICON,
    IconAssetLocator,
    IconResolver,
)


def write_asset(images_dir, name, themes=("light", "dark")):
    for theme in themes:
        folder = images_dir / theme
        folder.mkdir(parents=True, exist_ok=True)
        (folder / f"{name}.svg").write_text("<svg/>")


class TestIconResolver:
    """Tests for IconResolver.resolve_icon."""

    @pytest.mark.parametrize(
        "icon_type, expected",
        [
            ("png", "image"),
            ("JPEG", "image"),
            ("md", "markdown"),
            ("gitignore", "git"),
            ("txt", "text"),
            ("yml", "yaml"),
        ],
    )
    def test_builtin_groups(self, icon_type, expected):
        assert IconResolver().resolve_icon(icon_type) == expected

    def test_directory_and_root(self):
        resolver = IconResolver()
        assert resolver.resolve_icon("dir") == FOLDER_ICON
        assert resolver.resolve_icon("vsix") == VSIX_ICON

    def test_unknown_falls_back_to_file(self):
        assert IconResolver().resolve_icon("unknownext") == FILE_ICON

    def test_empty_type_is_file(self):
        assert IconResolver().resolve_icon("") == FILE_ICON

    def test_configured_overrides_builtin(self):
        resolver = IconResolver({"pictures": IconGroup(icon="picture", extensions=["PNG"])})
        assert resolver.resolve_icon("png") == "picture"
        assert resolver.resolve_icon("gif") == "image"

    def test_configured_new_extension(self):
        resolver = IconResolver({"javascript": IconGroup(icon="js", extensions=[".js", "mjs"])})
        assert resolver.resolve_icon("js") == "js"
        assert resolver.resolve_icon("mjs") == "js"

    def test_conflicting_groups_keep_first(self, caplog):
        groups = {
            "first": IconGroup(icon="one", extensions=["dat"]),
            "second": IconGroup(icon="two", extensions=["dat"]),
        }
        with caplog.at_level(logging.WARNING):
            resolver = IconResolver(groups)

        assert resolver.resolve_icon("dat") == "one"
        assert "dat" in caplog.text

    def test_asset_probe_used_for_unmapped_types(self):
        resolver = IconResolver(asset_exists=lambda name: name == "json")
        assert resolver.resolve_icon("json") == "json"
        assert resolver.resolve_icon("xml") == FILE_ICON

    def test_asset_probe_not_consulted_for_known_types(self):
        probed = []
        resolver = IconResolver(asset_exists=lambda name: probed.append(name) or True)

        resolver.resolve_icon("png")
        resolver.resolve_icon("dir")

        assert probed == []


class TestIconAssetLocator:
    """Tests for IconAssetLocator."""

    def test_locates_themed_pair(self, tmp_path):
        write_asset(tmp_path, "image")
        asset = IconAssetLocator(tmp_path).locate("image")

        assert asset.light == tmp_path / "light" / "image.svg"
        assert asset.dark == tmp_path / "dark" / "image.svg"

    def test_missing_asset_is_none(self, tmp_path):
        locator = IconAssetLocator(tmp_path)
        assert locator.locate("nothing") is None
        assert locator.exists("nothing") is False

    def test_incomplete_pair_is_none(self, tmp_path):
        write_asset(tmp_path, "half", themes=("light",))
        assert IconAssetLocator(tmp_path).locate("half") is None

    def test_lookup_memoized(self, tmp_path):
        locator = IconAssetLocator(tmp_path)
        assert locator.exists("late") is False

        write_asset(tmp_path, "late")

        assert locator.exists("late") is False
