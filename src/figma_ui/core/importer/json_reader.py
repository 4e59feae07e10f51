"""Parse design-tool REST JSON into source node variants."""

import json
import math
from pathlib import Path
from typing import Any

from figma_ui.config import PLUGIN_DATA_NAMESPACE
from figma_ui.models.node import (
    AutoLayout,
    AxisAlign,
    AxisSizingMode,
    Color,
    ColorStop,
    Constraint,
    Constraints,
    CornerRadii,
    Document,
    Effect,
    EllipseNode,
    FillStyle,
    FrameNode,
    GradientKind,
    GradientPaint,
    GroupNode,
    InstanceNode,
    LayoutAlign,
    LayoutChild,
    LayoutMode,
    LineNode,
    Padding,
    PageNode,
    Paint,
    PathGeometry,
    PolygonNode,
    RectangleNode,
    SceneNode,
    SolidPaint,
    StarNode,
    TextNode,
    TextStyle,
    Transform,
    UnsupportedNode,
    UnsupportedPaint,
    Vec2,
    VectorNode,
)

# Frame-like types share the frame variant.
_FRAME_TYPES = frozenset({"FRAME", "COMPONENT", "COMPONENT_SET"})

_VECTOR_TYPES: dict[str, type[VectorNode]] = {
    "VECTOR": VectorNode,
    "BOOLEAN_OPERATION": VectorNode,
    "RECTANGLE": RectangleNode,
    "ELLIPSE": EllipseNode,
    "LINE": LineNode,
    "REGULAR_POLYGON": PolygonNode,
    "STAR": StarNode,
}

_SUPPORTED_TYPES = _FRAME_TYPES | {"INSTANCE", "GROUP", "TEXT"} | frozenset(_VECTOR_TYPES)

# The REST API reports constraints with positional names.
_CONSTRAINT_NAMES: dict[str, Constraint] = {
    "LEFT": Constraint.MIN,
    "TOP": Constraint.MIN,
    "MIN": Constraint.MIN,
    "RIGHT": Constraint.MAX,
    "BOTTOM": Constraint.MAX,
    "MAX": Constraint.MAX,
    "CENTER": Constraint.CENTER,
    "LEFT_RIGHT": Constraint.STRETCH,
    "TOP_BOTTOM": Constraint.STRETCH,
    "STRETCH": Constraint.STRETCH,
    "SCALE": Constraint.SCALE,
}


def _color(raw: dict[str, Any] | None) -> Color:
    if not raw:
        return Color(0.0, 0.0, 0.0, 1.0)
    return Color(raw.get("r", 0.0), raw.get("g", 0.0), raw.get("b", 0.0), raw.get("a", 1.0))


def parse_paint(raw: dict[str, Any]) -> Paint:
    paint_type = raw.get("type", "SOLID")
    opacity = raw.get("opacity", 1.0)
    visible = raw.get("visible", True)
    if paint_type == "SOLID":
        return SolidPaint(color=_color(raw.get("color")), opacity=opacity, visible=visible)
    if paint_type in ("GRADIENT_LINEAR", "GRADIENT_RADIAL"):
        return GradientPaint(
            kind=GradientKind(paint_type),
            stops=tuple(
                ColorStop(position=s.get("position", 0.0), color=_color(s.get("color")))
                for s in raw.get("gradientStops", [])
            ),
            handles=tuple(
                Vec2(h.get("x", 0.0), h.get("y", 0.0))
                for h in raw.get("gradientHandlePositions", [])
            ),
            opacity=opacity,
            visible=visible,
        )
    return UnsupportedPaint(type_name=paint_type, opacity=opacity, visible=visible)


def _fill_style(raw: dict[str, Any]) -> FillStyle:
    return FillStyle(
        fills=tuple(parse_paint(p) for p in raw.get("fills", [])),
        strokes=tuple(parse_paint(p) for p in raw.get("strokes", [])),
        stroke_weight=raw.get("strokeWeight"),
        stroke_dashes=tuple(raw.get("strokeDashes", [])),
        opacity=raw.get("opacity", 1.0),
    )


def _transform(raw: dict[str, Any], parent_box: dict[str, Any] | None) -> Transform:
    """Read position from relativeTransform, falling back to bounding boxes."""
    box = raw.get("absoluteBoundingBox") or {}
    size = raw.get("size") or {}
    width = size.get("x", box.get("width", 0.0))
    height = size.get("y", box.get("height", 0.0))

    relative = raw.get("relativeTransform")
    if relative:
        (a, _c, tx), (b, _d, ty) = relative
        rotation = math.degrees(math.atan2(b, a))
        return Transform(x=tx, y=ty, width=width, height=height, rotation=rotation)

    x = box.get("x", 0.0)
    y = box.get("y", 0.0)
    if parent_box:
        x -= parent_box.get("x", 0.0)
        y -= parent_box.get("y", 0.0)
    return Transform(x=x, y=y, width=width, height=height, rotation=-raw.get("rotation", 0.0))


def _corners(raw: dict[str, Any]) -> CornerRadii:
    radii = raw.get("rectangleCornerRadii")
    if radii and len(radii) == 4:
        return CornerRadii(*radii)
    return CornerRadii.uniform(raw.get("cornerRadius", 0.0))


def _auto_layout(raw: dict[str, Any]) -> AutoLayout:
    return AutoLayout(
        mode=LayoutMode(raw.get("layoutMode", "NONE")),
        primary_align=AxisAlign(raw.get("primaryAxisAlignItems", "MIN")),
        counter_align=AxisAlign(raw.get("counterAxisAlignItems", "MIN")),
        padding=Padding(
            left=raw.get("paddingLeft", 0.0),
            right=raw.get("paddingRight", 0.0),
            top=raw.get("paddingTop", 0.0),
            bottom=raw.get("paddingBottom", 0.0),
        ),
        item_spacing=raw.get("itemSpacing", 0.0),
        primary_sizing=AxisSizingMode(raw.get("primaryAxisSizingMode", "AUTO")),
        counter_sizing=AxisSizingMode(raw.get("counterAxisSizingMode", "AUTO")),
    )


def _layout_child(raw: dict[str, Any]) -> LayoutChild:
    return LayoutChild(
        align=LayoutAlign(raw.get("layoutAlign", "INHERIT")),
        grow=raw.get("layoutGrow"),
    )


def _constraints(raw: dict[str, Any]) -> Constraints:
    constraints = raw.get("constraints") or {}
    return Constraints(
        horizontal=_CONSTRAINT_NAMES[constraints.get("horizontal", "LEFT")],
        vertical=_CONSTRAINT_NAMES[constraints.get("vertical", "TOP")],
    )


def _effects(raw: dict[str, Any]) -> tuple[Effect, ...]:
    effects = []
    for e in raw.get("effects", []):
        offset = e.get("offset")
        effects.append(
            Effect(
                type_name=e.get("type", ""),
                visible=e.get("visible", True),
                radius=e.get("radius", 0.0),
                offset=Vec2(offset["x"], offset["y"]) if offset else None,
                color=_color(e["color"]) if "color" in e else None,
            )
        )
    return tuple(effects)


def _geometry(items: list[dict[str, Any]] | None) -> tuple[PathGeometry, ...]:
    return tuple(
        PathGeometry(path=g["path"], winding_rule=g.get("windingRule", "NONZERO"))
        for g in items or []
        if g.get("path")
    )


def _text_style(raw: dict[str, Any]) -> TextStyle | None:
    style = raw.get("style")
    if not style:
        return None
    return TextStyle(
        font_family=style.get("fontFamily", ""),
        font_post_script_name=style.get("fontPostScriptName"),
        font_weight=style.get("fontWeight", 400),
        font_size=style.get("fontSize", 12),
        text_align_horizontal=style.get("textAlignHorizontal", "LEFT"),
        text_align_vertical=style.get("textAlignVertical", "TOP"),
        line_height_px=style.get("lineHeightPx"),
        letter_spacing=style.get("letterSpacing", 0.0),
    )


def _binding_key(raw: dict[str, Any], components: dict[str, str]) -> tuple[str | None, bool]:
    """The node's binding key, and whether it was inferred from its component."""
    plugin_data = (raw.get("sharedPluginData") or {}).get(PLUGIN_DATA_NAMESPACE) or {}
    key = plugin_data.get("bindingKey")
    if key:
        return key, False
    if raw.get("type") == "INSTANCE":
        name = components.get(raw.get("componentId", ""))
        return name, name is not None
    return None, False


class _Reader:
    def __init__(self, components: dict[str, str]) -> None:
        self.components = components
        self.seen_ids: set[str] = set()

    def node(self, raw: dict[str, Any], parent_box: dict[str, Any] | None) -> SceneNode:
        node_id = raw.get("id")
        if not node_id:
            msg = f"Node without id: {raw.get('name')!r}"
            raise ValueError(msg)
        if node_id in self.seen_ids:
            msg = f"Duplicate node id: {node_id!r}"
            raise ValueError(msg)
        self.seen_ids.add(node_id)

        node_type = raw.get("type", "")
        binding_key, inferred = _binding_key(raw, self.components)
        common: dict[str, Any] = {
            "id": node_id,
            "name": raw.get("name", ""),
            "visible": raw.get("visible", True),
            "binding_key": binding_key,
            "binding_key_inferred": inferred,
        }
        if node_type not in _SUPPORTED_TYPES:
            return UnsupportedNode(type_name=node_type, **common)

        box = raw.get("absoluteBoundingBox")
        common.update(
            transform=_transform(raw, parent_box),
            layout_child=_layout_child(raw),
            constraints=_constraints(raw),
            effects=_effects(raw),
        )

        if node_type == "TEXT":
            return TextNode(
                characters=raw.get("characters", ""),
                style=_text_style(raw),
                fill=_fill_style(raw),
                **common,
            )

        # Groups do not open a coordinate space of their own.
        child_box = parent_box if node_type == "GROUP" else box
        children = tuple(self.node(child, child_box) for child in raw.get("children", []))

        if node_type == "GROUP":
            return GroupNode(nodes=children, **common)

        if node_type in _FRAME_TYPES or node_type == "INSTANCE":
            frame_fields: dict[str, Any] = {
                "fill": _fill_style(raw),
                "corners": _corners(raw),
                "layout": _auto_layout(raw),
                "clips_content": raw.get("clipsContent", False),
                "nodes": children,
            }
            if node_type == "INSTANCE":
                return InstanceNode(component_id=raw.get("componentId"), **frame_fields, **common)
            return FrameNode(**frame_fields, **common)

        vector_cls = _VECTOR_TYPES[node_type]
        vector_fields: dict[str, Any] = {
            "fill": _fill_style(raw),
            "fill_geometry": _geometry(raw.get("fillGeometry")),
        }
        if vector_cls is RectangleNode:
            vector_fields["corners"] = _corners(raw)
        elif vector_cls is PolygonNode:
            vector_fields["point_count"] = raw.get("pointCount", 3)
        elif vector_cls is StarNode:
            vector_fields["point_count"] = raw.get("pointCount", 5)
            vector_fields["inner_radius"] = raw.get("innerRadius", 0.382)
        return vector_cls(**vector_fields, **common)


def parse_document_data(data: dict[str, Any], *, file_key: str = "") -> Document:
    """Parse a design file response into a Document.

    Args:
        data: Raw file data, with a ``document`` node whose children are pages.
        file_key: Identifier of the file the data came from.

    Returns:
        The parsed Document with every page and node converted to its variant.
    """
    root = data.get("document")
    if root is None:
        msg = "Missing 'document' node"
        raise ValueError(msg)

    components = {
        component_id: component.get("name", "")
        for component_id, component in (data.get("components") or {}).items()
    }
    reader = _Reader(components)

    pages: list[PageNode] = []
    for raw_page in root.get("children", []):
        if raw_page.get("type") != "CANVAS":
            msg = f"Expected a CANVAS page, got {raw_page.get('type')!r}"
            raise ValueError(msg)
        background = raw_page.get("backgroundColor")
        pages.append(
            PageNode(
                id=raw_page["id"],
                name=raw_page.get("name", ""),
                visible=raw_page.get("visible", True),
                nodes=tuple(reader.node(child, None) for child in raw_page.get("children", [])),
                background=_color(background) if background else None,
            )
        )

    return Document(
        file_key=file_key,
        name=data.get("name", ""),
        pages=tuple(pages),
        version=data.get("version"),
        components=components,
    )


def load_document(path: Path) -> Document:
    """Read and parse a design file saved as JSON; the file stem becomes the file key."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = f"{path}: expected a JSON object at the top level"
        raise ValueError(msg)
    return parse_document_data(data, file_key=path.stem)
