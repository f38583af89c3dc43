"""Tests for archive discovery and the tracked workspace."""

import pytest

from vsix_viewer.explorer.discovery import (
    ArchiveDiscovery,
    ArchiveWorkspace,
    expand_archive_paths,
)
from vsix_viewer.explorer.registry import ArchiveRegistry


class TestArchiveDiscovery:
    """Tests for ArchiveDiscovery."""

    def test_finds_archives_recursively(self, tmp_path, make_vsix):
        make_vsix([("x.txt", "x")], name="b.vsix")
        (tmp_path / "nested").mkdir()
        make_vsix([("y.txt", "y")], name="nested/A.VSIX")
        (tmp_path / "notes.txt").write_text("not an archive")

        archives = ArchiveDiscovery(tmp_path).discover()

        assert [a.name for a in archives] == ["b.vsix", "A.VSIX"]
        assert all(a.size_bytes > 0 for a in archives)

    def test_non_recursive(self, tmp_path, make_vsix):
        make_vsix([("x.txt", "x")], name="top.vsix")
        (tmp_path / "nested").mkdir()
        make_vsix([("y.txt", "y")], name="nested/deep.vsix")

        archives = ArchiveDiscovery(tmp_path).discover(recursive=False)

        assert [a.name for a in archives] == ["top.vsix"]

    def test_custom_extensions(self, tmp_path, make_vsix):
        make_vsix([("x.txt", "x")], name="bundle.zip")
        make_vsix([("x.txt", "x")], name="ext.vsix")

        archives = ArchiveDiscovery(tmp_path, extensions=[".ZIP"]).discover()

        assert [a.name for a in archives] == ["bundle.zip"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ArchiveDiscovery(tmp_path / "missing")

    def test_file_is_not_a_directory(self, make_vsix):
        path = make_vsix([])
        with pytest.raises(NotADirectoryError):
            ArchiveDiscovery(path)

    def test_archive_info_str(self, tmp_path, make_vsix):
        make_vsix([("x.txt", "x" * 4096)], name="a.vsix")
        info = ArchiveDiscovery(tmp_path).discover()[0]
        assert str(info).startswith("a.vsix (")
        assert str(info).endswith(" KB)")


class TestExpandArchivePaths:
    """Tests for expand_archive_paths."""

    def test_directories_expanded_files_kept(self, tmp_path, make_vsix):
        (tmp_path / "folder").mkdir()
        inner = make_vsix([], name="folder/inner.vsix")
        explicit = tmp_path / "explicit.vsix"

        paths = expand_archive_paths([tmp_path / "folder", explicit])

        assert paths == [inner, explicit]


class TestArchiveWorkspace:
    """Tests for ArchiveWorkspace."""

    @pytest.mark.asyncio
    async def test_add_and_remove_reload_registry(self, make_vsix):
        a = make_vsix([("a.txt", "a")], name="a.vsix")
        b = make_vsix([("b.txt", "b")], name="b.vsix")
        registry = ArchiveRegistry()
        workspace = ArchiveWorkspace(registry, [a])

        await workspace.refresh()
        assert [root.label for root in registry.roots] == ["a.vsix"]

        await workspace.add(b, a)
        assert [root.label for root in registry.roots] == ["a.vsix", "b.vsix"]
        assert workspace.tracks(b)

        await workspace.remove(a)
        assert [root.label for root in registry.roots] == ["b.vsix"]
        assert not workspace.tracks(a)
        assert workspace.paths == [b]

    @pytest.mark.asyncio
    async def test_scan_replaces_tracked_set(self, tmp_path, make_vsix):
        outside = make_vsix([("o.txt", "o")], name="outside.vsix")
        (tmp_path / "scan").mkdir()
        found = make_vsix([("f.txt", "f")], name="scan/found.vsix")
        registry = ArchiveRegistry()
        workspace = ArchiveWorkspace(registry, [outside])

        result = await workspace.scan(ArchiveDiscovery(tmp_path / "scan"))

        assert workspace.paths == [found]
        assert [index.name for index in result.loaded] == ["found.vsix"]
        assert len(registry) == 1
