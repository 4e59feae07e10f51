"""Walk a document page by page and build one output tree per page."""

from dataclasses import replace

from loguru import logger

from figma_ui.core.cache import AssetCaches
from figma_ui.core.context import ConversionContext, ImportOptions
from figma_ui.core.converters.registry import ConverterRegistry
from figma_ui.core.layout.auto_layout import anchor_to_parent, size_layout_child
from figma_ui.errors import ConversionError
from figma_ui.models.node import (
    Document,
    FrameNode,
    GroupNode,
    LayoutMode,
    LayoutParticipant,
    PageNode,
    SceneNode,
)
from figma_ui.models.output import ImageAttachment, OutputNode
from figma_ui.models.result import ImportResult, LogEntry, PageResult


class SceneTreeBuilder:
    """Runs import passes with one registry and one set of asset caches.

    Both are owned by the builder, not by a pass, so a builder must not run
    two passes at the same time. Use one builder per concurrent pass.
    """

    def __init__(
        self, registry: ConverterRegistry | None = None, caches: AssetCaches | None = None
    ) -> None:
        self.registry = registry if registry is not None else ConverterRegistry()
        self.caches = caches if caches is not None else AssetCaches()

    def import_document(
        self, document: Document, options: ImportOptions | None = None
    ) -> ImportResult:
        """Convert the selected pages of a document.

        Returns every page tree with the generated images and dependencies,
        or, if the pass aborts, an empty result carrying the error and the
        diagnostics collected so far. Nothing generated by an aborted pass
        survives it.
        """
        if document is None:
            msg = "document must not be None"
            raise ValueError(msg)
        options = options or ImportOptions()

        self.caches.clear()
        self.registry.ensure_defaults()
        context = ConversionContext(
            registry=self.registry,
            document=document,
            options=options,
            caches=self.caches,
            builder=self,
        )

        pages: list[PageResult] = []
        flushed: list[LogEntry] = []
        try:
            for page in document.pages:
                if options.selected_pages is not None and page.id not in options.selected_pages:
                    logger.debug("Skipping page {!r}", page.name)
                    continue
                result = self.build_page(page, context)
                flushed.extend(result.all_logs)
                pages.append(result)
        except Exception as e:
            logs = tuple(flushed + context.logs)
            logger.error("Import of {!r} aborted: {}", document.name, e)
            self.caches.rollback()
            context.logs.clear()
            return ImportResult(error=e, logs=logs)

        logger.info(
            "Imported {} page(s), {} image(s), {} dependency(ies)",
            len(pages),
            len(self.caches.images),
            len(self.caches.dependencies),
        )
        return ImportResult(
            pages=tuple(pages),
            images=self.caches.images.as_dict(),
            dependencies=self.caches.dependencies.as_dict(),
            logs=tuple(flushed),
        )

    def build_page(self, page: PageNode, context: ConversionContext) -> PageResult:
        logger.debug("Building page {!r}", page.name)
        root = context.create_node(page, "page")
        root.rect.stretch()

        # Only frames (and instances) at the top level become page content.
        for child in page.children:
            if not isinstance(child, FrameNode):
                logger.debug("Dropping top-level {} {!r}", type(child).__name__, child.name)
                continue
            output = self.convert_node(child, context)
            if output is None:
                continue
            root.add_child(output)
            output.rect.stretch()

        logs = self.flush_logs(context)
        return PageResult(page_id=page.id, name=page.name, root=root, all_logs=logs)

    def flush_logs(self, context: ConversionContext) -> list[LogEntry]:
        """Move the pass log onto the nodes it refers to and hand it back."""
        entries = list(context.logs)
        context.logs.clear()
        for entry in entries:
            if entry.node_id is None:
                continue
            node = self.caches.nodes.get(entry.node_id)
            if node is not None:
                node.logs.append(entry)
        return entries

    def convert_node(self, node: SceneNode, context: ConversionContext) -> OutputNode | None:
        """Convert one node and its subtree; None if it is left out of the tree."""
        converter = self.registry.resolve(node, context)
        if converter is None:
            return None

        try:
            output = converter.convert(node, context)
            self.apply_effects(node, output, context)
        except ConversionError as e:
            if context.fail_on_error:
                raise
            context.log_error(e, e.node_id or node.id)
            self.caches.discard_subtree(node.id)
            self.caches.prune_images(self.referenced_images())
            return None
        return output

    def referenced_images(self) -> set[str]:
        """Keys of the images attached to nodes built so far in this pass."""
        keys = set()
        for _node_id, output in self.caches.nodes:
            image = output.get(ImageAttachment)
            if image is not None:
                keys.add(image.image_key)
        return keys

    def build_children(
        self, source: SceneNode, output: OutputNode, context: ConversionContext
    ) -> None:
        """Convert the children of source under output, in source order."""
        layout_mode = source.layout.mode if isinstance(source, FrameNode) else LayoutMode.NONE

        for child in source.children:
            child_output = self.convert_node(child, context)
            if child_output is None:
                continue
            output.add_child(child_output)
            if not isinstance(child, LayoutParticipant):
                continue

            if layout_mode is not LayoutMode.NONE:
                size_layout_child(output, layout_mode, child_output, child)
            elif isinstance(source, LayoutParticipant):
                transform = child.transform
                parent_size = source.transform
                if isinstance(source, GroupNode):
                    # Group children are positioned in the group's parent space.
                    transform = replace(
                        transform, x=transform.x - parent_size.x, y=transform.y - parent_size.y
                    )
                anchor_to_parent(child_output, transform, child.constraints, parent_size)

    def apply_effects(
        self, node: SceneNode, output: OutputNode, context: ConversionContext
    ) -> None:
        if not isinstance(node, LayoutParticipant):
            return
        if not any(effect.visible for effect in node.effects):
            return
        for hook in context.options.effects:
            if hook.can_apply(node, context):
                hook.apply(node, output, context)
