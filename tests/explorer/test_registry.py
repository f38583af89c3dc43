"""Tests for multi-archive tracking."""

import asyncio
import logging

import pytest

from vsix_viewer.explorer.archive_index import ArchiveIndex
from vsix_viewer.explorer.errors import EntryNotFoundError, OwnerNotFoundError, ParseError, ReadError
from vsix_viewer.explorer.registry import ArchiveRegistry, registry_key
from vsix_viewer.explorer.tree import TreeNode, find_node, walk


@pytest.fixture
def three_archives(make_vsix, corrupt_vsix):
    first = make_vsix([("one.txt", "1")], name="first.vsix")
    second = make_vsix(["dir/", ("dir/two.txt", "2")], name="second.vsix")
    return first, corrupt_vsix, second


class TestLoadAll:
    """Tests for ArchiveRegistry.load_all."""

    @pytest.mark.asyncio
    async def test_corrupt_archive_omitted(self, three_archives, caplog):
        first, corrupt, second = three_archives
        registry = ArchiveRegistry()

        with caplog.at_level(logging.ERROR):
            result = await registry.load_all(three_archives)

        assert len(registry) == 2
        assert [root.label for root in registry.roots] == ["first.vsix", "second.vsix"]
        assert first in registry
        assert corrupt not in registry
        assert isinstance(result.failed[registry_key(corrupt)], ParseError)
        assert "corrupt.vsix" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_archive_omitted(self, make_vsix, tmp_path):
        good = make_vsix([("a.txt", "a")])
        registry = ArchiveRegistry()

        result = await registry.load_all([good, tmp_path / "gone.vsix"])

        assert len(registry) == 1
        assert isinstance(result.failed[registry_key(tmp_path / "gone.vsix")], ReadError)

    @pytest.mark.asyncio
    async def test_notifies_once_per_batch(self, three_archives):
        registry = ArchiveRegistry()
        calls = []
        registry.on_did_change(lambda: calls.append(len(registry)))

        await registry.load_all(three_archives)

        assert calls == [2]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, three_archives):
        registry = ArchiveRegistry()
        calls = []
        unsubscribe = registry.on_did_change(lambda: calls.append(1))
        unsubscribe()

        await registry.load_all(three_archives)

        assert calls == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_batch(self, three_archives):
        registry = ArchiveRegistry()
        calls = []

        def broken():
            raise RuntimeError("listener bug")

        registry.on_did_change(broken)
        registry.on_did_change(lambda: calls.append(1))

        result = await registry.load_all(three_archives)

        assert result.applied
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_replaces_contents_wholesale(self, make_vsix):
        a = make_vsix([("a.txt", "a")], name="a.vsix")
        b = make_vsix([("b.txt", "b")], name="b.vsix")
        registry = ArchiveRegistry()

        await registry.load_all([a, b])
        old_root = registry.get(a).root
        await registry.load_all([a])

        assert len(registry) == 1
        assert b not in registry
        assert registry.get(a).root is not old_root

    @pytest.mark.asyncio
    async def test_duplicate_paths_loaded_once(self, make_vsix):
        a = make_vsix([("a.txt", "a")])
        registry = ArchiveRegistry()

        result = await registry.load_all([a, str(a)])

        assert len(result.loaded) == 1
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_empty_batch_clears_registry(self, make_vsix):
        registry = ArchiveRegistry()
        await registry.load_all([make_vsix([("a.txt", "a")])])

        await registry.load_all([])

        assert len(registry) == 0
        assert registry.roots == []

    @pytest.mark.asyncio
    async def test_superseded_batch_is_discarded(self, make_vsix, monkeypatch):
        slow = make_vsix([("slow.txt", "s")], name="slow.vsix")
        fast = make_vsix([("fast.txt", "f")], name="fast.vsix")
        release = asyncio.Event()
        original_load = ArchiveIndex.load.__func__

        async def gated_load(cls, path):
            if "slow" in str(path):
                await release.wait()
            return await original_load(cls, path)

        monkeypatch.setattr(ArchiveIndex, "load", classmethod(gated_load))
        registry = ArchiveRegistry()
        notifications = []
        registry.on_did_change(lambda: notifications.append([r.label for r in registry.roots]))

        stale_task = asyncio.create_task(registry.load_all([slow]))
        await asyncio.sleep(0)
        fresh = await registry.load_all([fast])
        release.set()
        stale = await stale_task

        assert fresh.applied
        assert not stale.applied
        assert [root.label for root in registry.roots] == ["fast.vsix"]
        assert notifications == [["fast.vsix"]]
        assert stale.loaded[0].archive_handle.fp is None

    @pytest.mark.asyncio
    async def test_lookup_helpers(self, make_vsix):
        a = make_vsix([("a.txt", "a")])
        registry = ArchiveRegistry()
        await registry.load_all([a])

        index = registry.get(a)
        assert registry.get_by_id(index.archive_id) is index
        assert registry.indexes == [index]
        assert registry.paths == [index.source_path]
        assert 42 not in registry


class TestFindOwningArchive:
    """Tests for ArchiveRegistry.find_owning_archive."""

    @pytest.mark.asyncio
    async def test_every_node_maps_to_its_archive(self, make_vsix):
        a = make_vsix(["x/", ("x/y.txt", "y"), ("z.txt", "z")], name="a.vsix")
        b = make_vsix(["x/", ("x/y.txt", "y")], name="b.vsix")
        registry = ArchiveRegistry()
        await registry.load_all([a, b])

        for index in registry.indexes:
            for node in walk(index.root):
                assert registry.find_owning_archive(node) is index

    @pytest.mark.asyncio
    async def test_removed_archive_nodes_have_no_owner(self, make_vsix):
        a = make_vsix([("a.txt", "a")], name="a.vsix")
        b = make_vsix([("b.txt", "b")], name="b.vsix")
        registry = ArchiveRegistry()
        await registry.load_all([a, b])
        stale = find_node(registry.get(b).root, "b.txt")

        await registry.load_all([a])

        assert registry.find_owning_archive(stale) is None

    @pytest.mark.asyncio
    async def test_reloaded_archive_old_nodes_have_no_owner(self, make_vsix):
        a = make_vsix([("a.txt", "a")])
        registry = ArchiveRegistry()
        await registry.load_all([a])
        stale = find_node(registry.get(a).root, "a.txt")

        await registry.load_all([a])

        assert registry.find_owning_archive(stale) is None

    @pytest.mark.asyncio
    async def test_untagged_node_found_by_search(self, make_vsix):
        registry = ArchiveRegistry()
        await registry.load_all([make_vsix([("a.txt", "a")])])
        index = registry.indexes[0]
        untagged = TreeNode.file("extra.txt")
        index.root.children.append(untagged)

        assert registry.find_owning_archive(untagged) is index
        assert registry.find_owning_archive(TreeNode.file("orphan.txt")) is None


class TestResolveContent:
    """Tests for ArchiveRegistry.resolve_content."""

    @pytest.mark.asyncio
    async def test_resolves_file_bytes(self, sample_vsix):
        registry = ArchiveRegistry()
        await registry.load_all([sample_vsix])
        node = find_node(registry.roots[0], "extension/package.json")

        assert await registry.resolve_content(node) == b'{"name": "sample"}'

    @pytest.mark.asyncio
    async def test_directory_has_no_content(self, sample_vsix):
        registry = ArchiveRegistry()
        await registry.load_all([sample_vsix])
        node = find_node(registry.roots[0], "extension")

        with pytest.raises(EntryNotFoundError):
            await registry.resolve_content(node)

    @pytest.mark.asyncio
    async def test_untracked_node_refused(self, sample_vsix):
        registry = ArchiveRegistry()
        await registry.load_all([sample_vsix])
        node = find_node(registry.roots[0], "extension/package.json")
        registry.clear()

        with pytest.raises(OwnerNotFoundError):
            await registry.resolve_content(node)

    @pytest.mark.asyncio
    async def test_registry_usable_after_failure(self, three_archives):
        registry = ArchiveRegistry()
        await registry.load_all(three_archives)
        node = find_node(registry.get(three_archives[2]).root, "dir/two.txt")

        assert await registry.resolve_content(node) == b"2"
