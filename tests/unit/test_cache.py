"""Tests for the per-pass asset caches."""

from pathlib import Path

import pytest

from figma_ui.core.cache import AssetCache, AssetCaches, Dependency
from figma_ui.errors import DuplicateAssetError
from figma_ui.models.output import ImageAttachment, OutputNode


class Releasable:
    def __init__(self) -> None:
        self.released = False

    def release(self) -> None:
        self.released = True


def test_get_or_create_reuses_cached_artifact() -> None:
    """The factory runs once per key; later lookups return the same object."""
    cache: AssetCache[object] = AssetCache("images")
    calls: list[int] = []

    def factory() -> object:
        calls.append(1)
        return object()

    first = cache.get_or_create("image-1", factory)
    second = cache.get_or_create("image-1", factory)

    assert first is second
    assert len(calls) == 1
    assert len(cache) == 1


def test_add_rejects_duplicate_keys() -> None:
    cache: AssetCache[int] = AssetCache("nodes")
    cache.add("1:1", 1)

    with pytest.raises(DuplicateAssetError, match="already produced"):
        cache.add("1:1", 2)
    assert cache.get("1:1") == 1


def test_cache_preserves_insertion_order() -> None:
    cache: AssetCache[int] = AssetCache("nodes")
    for i, key in enumerate(["b", "a", "c"]):
        cache.add(key, i)

    assert cache.keys() == ["b", "a", "c"]
    assert list(cache) == [("b", 0), ("a", 1), ("c", 2)]
    assert cache.as_dict() == {"b": 0, "a": 1, "c": 2}
    assert "a" in cache
    assert cache.pop("a") == 1
    assert cache.pop("a") is None


def test_rollback_releases_generated_artifacts_and_empties_tables(caches: AssetCaches) -> None:
    node = Releasable()
    image = Releasable()
    caches.nodes.add("1:1", node)
    caches.images.add("image-1", image)
    caches.dependencies.add("font", Dependency(key="font", path=Path("Inter.ttf")))

    caches.rollback()

    assert node.released
    assert image.released
    assert caches.is_empty()
    assert len(caches.nodes) == len(caches.images) == len(caches.dependencies) == 0


def test_discard_subtree_drops_node_and_descendants(caches: AssetCaches) -> None:
    parent = OutputNode("1:1", "Parent", "frame")
    failed = OutputNode("1:2", "Failed", "frame")
    grandchild = OutputNode("1:3", "Grandchild", "vector")
    grandchild.attach(ImageAttachment(image_key="image-1"))
    parent.add_child(failed)
    failed.add_child(grandchild)
    for node in (parent, failed, grandchild):
        caches.nodes.add(node.node_id, node)

    caches.discard_subtree("1:2")

    assert caches.nodes.keys() == ["1:1"]
    assert parent.children == []


def test_discard_subtree_ignores_unknown_ids(caches: AssetCaches) -> None:
    caches.nodes.add("1:1", OutputNode("1:1", "Node", "frame"))

    caches.discard_subtree("9:9")

    assert caches.nodes.keys() == ["1:1"]


def test_prune_images_releases_unreferenced_images(caches: AssetCaches) -> None:
    shared, orphan = Releasable(), Releasable()
    caches.images.add("image-shared", shared)
    caches.images.add("image-orphan", orphan)

    pruned = caches.prune_images({"image-shared"})

    assert pruned == ["image-orphan"]
    assert caches.images.keys() == ["image-shared"]
    assert orphan.released
    assert not shared.released


def test_clear_empties_all_tables(caches: AssetCaches) -> None:
    caches.nodes.add("1:1", OutputNode("1:1", "Node", "frame"))
    caches.images.add("image-1", Releasable())

    assert not caches.is_empty()
    caches.clear()
    assert caches.is_empty()
