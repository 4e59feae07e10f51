"""Structural converters: one per source node variant."""

from abc import ABC, abstractmethod
from typing import TypeVar

from figma_ui.core.context import ConversionContext
from figma_ui.core.layout.auto_layout import add_content_size_fitter, add_layout_group
from figma_ui.core.raster.rasterizer import image_key, rasterize, shape_for_node
from figma_ui.errors import ConversionError, RasterizationError
from figma_ui.models.node import (
    EllipseNode,
    Filled,
    FrameNode,
    GroupNode,
    InstanceNode,
    LineNode,
    PolygonNode,
    RectangleNode,
    SceneNode,
    SolidPaint,
    StarNode,
    TextNode,
    VectorNode,
)
from figma_ui.models.output import ClipMask, ImageAttachment, OutputNode, TextAttachment
from figma_ui.protocols import ConverterKind

N = TypeVar("N", bound=SceneNode)


def expect_variant(node: SceneNode, node_type: type[N]) -> N:
    """Return node narrowed to node_type, or raise ConversionError."""
    if not isinstance(node, node_type):
        msg = f"{type(node).__name__} {node.id!r} is not a {node_type.__name__}"
        raise ConversionError(msg, node_id=node.id)
    return node


class NodeConverter(ABC):
    """Base for converters bound to exactly one node variant."""

    kind = ConverterKind.STRUCTURAL
    node_type: type[SceneNode] = SceneNode
    output_kind = "node"

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def can_convert(self, node: SceneNode, context: ConversionContext) -> bool:
        # Exact match: InstanceNode must not be taken by the frame converter.
        return type(node) is self.node_type

    @abstractmethod
    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode: ...


def add_image_if_needed(output: OutputNode, node: Filled, context: ConversionContext) -> None:
    """Rasterize the node's fills and strokes into a (shared) image attachment."""
    raster = context.options.raster
    shape = shape_for_node(node, raster)
    if shape is None:
        return

    try:
        generated = context.caches.images.get_or_create(
            image_key(shape, raster), lambda: rasterize(shape, raster, name=node.id)
        )
    except RasterizationError as e:
        context.log_warning(f"Image omitted for {node.name!r}: {e}", node.id)
        return

    if generated.skipped_paints:
        context.log_warning(
            f"Unsupported paints skipped on {node.name!r}: {', '.join(generated.skipped_paints)}",
            node.id,
        )

    image = output.attach(
        ImageAttachment(
            image_key=generated.key,
            sliced=generated.insets is not None,
            color=(1.0, 1.0, 1.0, node.fill.opacity),
        )
    )

    # Only one composited image exists per node, so hidden fills cannot be
    # toggled separately from the visible ones.
    if generated.hidden_fills:
        image.enabled = False
        if len(shape.fills) > 1:
            context.log_warning(
                f"{node.name!r} has {len(shape.fills)} fills and {generated.hidden_fills} hidden; "
                "multiple fills are composited into one image, image disabled",
                node.id,
            )


class FrameNodeConverter(NodeConverter):
    node_type = FrameNode
    output_kind = "frame"

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        frame = expect_variant(node, FrameNode)
        output = context.create_node(frame, self.output_kind)
        add_image_if_needed(output, frame, context)
        add_layout_group(output, frame)
        add_content_size_fitter(output, frame)
        if frame.clips_content:
            output.attach(ClipMask())
        context.builder.build_children(frame, output, context)
        return output


class InstanceNodeConverter(FrameNodeConverter):
    node_type = InstanceNode
    output_kind = "instance"


class GroupNodeConverter(NodeConverter):
    node_type = GroupNode
    output_kind = "group"

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        group = expect_variant(node, GroupNode)
        output = context.create_node(group, self.output_kind)
        context.builder.build_children(group, output, context)
        return output


class VectorNodeConverter(NodeConverter):
    node_type: type[SceneNode] = VectorNode
    output_kind = "vector"

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        vector = expect_variant(node, VectorNode)
        output = context.create_node(vector, self.output_kind)
        add_image_if_needed(output, vector, context)
        return output


class RectangleNodeConverter(VectorNodeConverter):
    node_type = RectangleNode
    output_kind = "rectangle"


class EllipseNodeConverter(VectorNodeConverter):
    node_type = EllipseNode
    output_kind = "ellipse"


class LineNodeConverter(VectorNodeConverter):
    node_type = LineNode
    output_kind = "line"


class PolygonNodeConverter(VectorNodeConverter):
    node_type = PolygonNode
    output_kind = "polygon"


class StarNodeConverter(VectorNodeConverter):
    node_type = StarNode
    output_kind = "star"


class TextNodeConverter(NodeConverter):
    node_type = TextNode
    output_kind = "text"

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        text = expect_variant(node, TextNode)
        output = context.create_node(text, self.output_kind)
        if text.style is None:
            context.log_error(f"Text node {text.name!r} has no style", text.id)
            return output

        font = context.resolve_font(text)
        color = (0.0, 0.0, 0.0, 1.0)
        solid = next(
            (p for p in text.fill.fills if isinstance(p, SolidPaint) and p.visible), None
        )
        if solid is not None:
            c = solid.color
            color = (c.r, c.g, c.b, c.a * solid.opacity * text.fill.opacity)

        output.attach(
            TextAttachment(
                text=text.characters,
                font_name=text.style.font_name,
                font_size=text.style.font_size,
                font_asset=str(font.path) if font is not None else None,
                color=color,
                align_horizontal=text.style.text_align_horizontal,
                align_vertical=text.style.text_align_vertical,
                line_height=text.style.line_height_px,
                letter_spacing=text.style.letter_spacing,
            )
        )

        hook = context.options.localization
        if hook is not None and hook.can_apply(text, context):
            hook.apply(text, output, context)
        return output


def default_node_converters() -> list[NodeConverter]:
    return [
        GroupNodeConverter(),
        FrameNodeConverter(),
        VectorNodeConverter(),
        RectangleNodeConverter(),
        EllipseNodeConverter(),
        LineNodeConverter(),
        PolygonNodeConverter(),
        StarNodeConverter(),
        TextNodeConverter(),
        InstanceNodeConverter(),
    ]
