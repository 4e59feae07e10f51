"""Per-pass bookkeeping of generated nodes, generated images and dependencies."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from loguru import logger

from figma_ui.errors import DuplicateAssetError

T = TypeVar("T")


@dataclass(frozen=True)
class Dependency:
    """An existing asset the output depends on but did not create."""

    key: str
    path: Path
    kind: str = "font"


class AssetCache(Generic[T]):
    """Insertion-ordered table of artifacts, each key produced at most once."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._items: dict[str, T] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[tuple[str, T]]:
        return iter(list(self._items.items()))

    def add(self, key: str, value: T) -> T:
        if key in self._items:
            msg = f"{self.name}: key {key!r} was already produced in this pass"
            raise DuplicateAssetError(msg)
        self._items[key] = value
        return value

    def get(self, key: str) -> T | None:
        return self._items.get(key)

    def get_or_create(self, key: str, factory: Callable[[], T]) -> T:
        """Return the cached artifact for key, creating it on first request."""
        cached = self._items.get(key)
        if cached is not None:
            logger.debug("{}: reusing {}", self.name, key)
            return cached
        return self.add(key, factory())

    def pop(self, key: str) -> T | None:
        return self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def as_dict(self) -> dict[str, T]:
        return dict(self._items)

    def clear(self) -> None:
        self._items.clear()


def _release(value: object) -> None:
    release = getattr(value, "release", None)
    if release is not None:
        release()


class AssetCaches:
    """The three tables an import pass fills.

    ``nodes`` and ``images`` hold artifacts the pass created and must release
    on failure; ``dependencies`` only references assets owned by others.
    """

    def __init__(self) -> None:
        # Typed loosely to keep this module free of output/raster imports.
        self.nodes: AssetCache = AssetCache("nodes")
        self.images: AssetCache = AssetCache("images")
        self.dependencies: AssetCache[Dependency] = AssetCache("dependencies")

    def clear(self) -> None:
        self.nodes.clear()
        self.images.clear()
        self.dependencies.clear()

    def is_empty(self) -> bool:
        return not (self.nodes or self.images or self.dependencies)

    def rollback(self) -> None:
        """Release every generated artifact, then empty all tables."""
        released = 0
        for table in (self.nodes, self.images):
            for _key, value in table:
                if value is not None:
                    _release(value)
                    released += 1
        logger.debug("Rolled back {} generated artifacts", released)
        self.clear()

    def discard_subtree(self, node_id: str) -> None:
        """Drop a node produced by a failed conversion, and its descendants."""
        root = self.nodes.get(node_id)
        if root is None:
            return
        for node in list(root.walk()):
            self.nodes.pop(node.node_id)
        root.release()

    def prune_images(self, referenced: set[str]) -> list[str]:
        """Release and drop every image whose key is not in referenced.

        Images are shared by content, so an image stays as long as one
        remaining node still uses it.
        """
        pruned = [key for key in self.images.keys() if key not in referenced]
        for key in pruned:
            image = self.images.pop(key)
            if image is not None:
                _release(image)
        if pruned:
            logger.debug("Dropped {} unreferenced image(s)", len(pruned))
        return pruned
