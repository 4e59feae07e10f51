"""Import options and the state shared by converters during one pass."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from figma_ui.core.cache import AssetCaches, Dependency
from figma_ui.core.raster.rasterizer import RasterOptions
from figma_ui.errors import ConversionError
from figma_ui.models.node import Document, SceneNode, TextNode, iter_nodes
from figma_ui.models.output import OutputNode
from figma_ui.models.result import LogEntry, LogLevel
from figma_ui.protocols import EffectHook, LocalizationHook

if TYPE_CHECKING:
    from figma_ui.core.builder import SceneTreeBuilder
    from figma_ui.core.converters.registry import ConverterRegistry


@dataclass(frozen=True)
class FontAsset:
    """A font file the generated text refers to."""

    name: str
    path: Path


@dataclass(frozen=True)
class ImportOptions:
    """What to import and how.

    Attributes:
        selected_pages: Page ids to import. None imports every page.
        raster: Image generation settings.
        localization: Hook offered every text node.
        effects: Hooks offered every node with visible effects.
        fonts: Logical font name to font asset. Lookups ignore case.
        fallback_font: Used for names missing from ``fonts``.
        fail_on_error: Abort the pass on the first converter error instead of
            logging it and continuing.
    """

    selected_pages: frozenset[str] | None = None
    raster: RasterOptions = field(default_factory=RasterOptions)
    localization: LocalizationHook | None = None
    effects: tuple[EffectHook, ...] = ()
    fonts: dict[str, FontAsset] = field(default_factory=dict, hash=False)
    fallback_font: FontAsset | None = None
    fail_on_error: bool = True

    def lookup_font(self, font_name: str) -> FontAsset | None:
        wanted = font_name.casefold()
        for name, asset in self.fonts.items():
            if name.casefold() == wanted:
                return asset
        return None


def collect_font_names(document: Document) -> list[str]:
    """Logical font names used by text nodes, in order of first use."""
    names: dict[str, None] = {}
    for page in document.pages:
        for node in iter_nodes(page):
            if isinstance(node, TextNode) and node.style is not None:
                names.setdefault(node.style.font_name, None)
    return list(names)


class ConversionContext:
    """Registry, document, options, diagnostics and caches for one pass."""

    def __init__(
        self,
        *,
        registry: "ConverterRegistry",
        document: Document,
        options: ImportOptions,
        caches: AssetCaches,
        builder: "SceneTreeBuilder",
    ) -> None:
        self.registry = registry
        self.document = document
        self.options = options
        self.caches = caches
        self.builder = builder
        self.logs: list[LogEntry] = []

    @property
    def fail_on_error(self) -> bool:
        return self.options.fail_on_error

    def create_node(self, source: SceneNode, kind: str) -> OutputNode:
        """Create the output node for a source node and register it for this pass."""
        output = OutputNode(source.id, source.name, kind)
        output.active = source.visible
        return self.caches.nodes.add(source.id, output)

    def log_warning(self, message: str, node_id: str | None = None) -> None:
        logger.warning(message)
        self.logs.append(LogEntry(LogLevel.WARNING, message, node_id))

    def log_error(self, error: Exception | str, node_id: str | None = None) -> None:
        """Record a converter problem, or raise it when failing on errors."""
        if isinstance(error, str):
            error = ConversionError(error, node_id=node_id)
        if self.fail_on_error:
            raise error
        logger.error(str(error))
        self.logs.append(LogEntry(LogLevel.ERROR, str(error), node_id))

    def resolve_font(self, node: TextNode) -> FontAsset | None:
        """Find the font asset for a text node, falling back when configured.

        Both a missing mapping and a fallback substitution are reported as
        warnings. Resolved fonts are tracked as dependencies of the output.
        """
        if node.style is None:
            return None
        font_name = node.style.font_name
        font = self.options.lookup_font(font_name)
        if font is None:
            font = self.options.fallback_font
            if font is None:
                self.log_warning(f"Font {font_name!r} not found for {node.name!r}", node.id)
                return None
            self.log_warning(
                f"Font {font_name!r} not found for {node.name!r}, using fallback {font.name!r}",
                node.id,
            )
        key = str(font.path)
        if key not in self.caches.dependencies:
            self.caches.dependencies.add(key, Dependency(key=key, path=font.path, kind="font"))
        return font
