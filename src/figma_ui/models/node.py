"""Domain models for design documents.

Source nodes form a closed set of variants. Each variant only carries the
capabilities it legitimately has (transform, fill style, corner radii,
auto-layout, ...), so converters test for a variant or a capability field
instead of probing arbitrary attributes.
"""

from dataclasses import dataclass, field
from enum import Enum


class LayoutMode(Enum):
    NONE = "NONE"
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


class AxisAlign(Enum):
    """Primary/counter axis alignment of an auto-layout container."""

    MIN = "MIN"
    CENTER = "CENTER"
    MAX = "MAX"
    SPACE_BETWEEN = "SPACE_BETWEEN"
    BASELINE = "BASELINE"


class AxisSizingMode(Enum):
    FIXED = "FIXED"
    AUTO = "AUTO"


class LayoutAlign(Enum):
    """Counter-axis alignment of a child inside an auto-layout container."""

    INHERIT = "INHERIT"
    STRETCH = "STRETCH"
    MIN = "MIN"
    CENTER = "CENTER"
    MAX = "MAX"


class Constraint(Enum):
    MIN = "MIN"
    CENTER = "CENTER"
    MAX = "MAX"
    STRETCH = "STRETCH"
    SCALE = "SCALE"


class GradientKind(Enum):
    LINEAR = "GRADIENT_LINEAR"
    RADIAL = "GRADIENT_RADIAL"


@dataclass(frozen=True)
class Color:
    """RGBA color, each channel in the 0..1 range."""

    r: float
    g: float
    b: float
    a: float = 1.0


@dataclass(frozen=True)
class Vec2:
    x: float
    y: float


@dataclass(frozen=True)
class Transform:
    """Placement of a node relative to its parent."""

    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0


@dataclass(frozen=True)
class SolidPaint:
    color: Color
    opacity: float = 1.0
    visible: bool = True


@dataclass(frozen=True)
class ColorStop:
    position: float
    color: Color


@dataclass(frozen=True)
class GradientPaint:
    kind: GradientKind
    stops: tuple[ColorStop, ...]
    handles: tuple[Vec2, ...]
    opacity: float = 1.0
    visible: bool = True


@dataclass(frozen=True)
class UnsupportedPaint:
    """A paint type the rasterizer cannot draw (image, angular, diamond, ...)."""

    type_name: str
    opacity: float = 1.0
    visible: bool = True


Paint = SolidPaint | GradientPaint | UnsupportedPaint


@dataclass(frozen=True)
class FillStyle:
    fills: tuple[Paint, ...] = ()
    strokes: tuple[Paint, ...] = ()
    stroke_weight: float | None = None
    stroke_dashes: tuple[float, ...] = ()
    opacity: float = 1.0

    @property
    def is_empty(self) -> bool:
        return not self.fills and not self.strokes


@dataclass(frozen=True)
class CornerRadii:
    top_left: float = 0.0
    top_right: float = 0.0
    bottom_right: float = 0.0
    bottom_left: float = 0.0

    @classmethod
    def uniform(cls, radius: float) -> "CornerRadii":
        return cls(radius, radius, radius, radius)


@dataclass(frozen=True)
class Padding:
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0


@dataclass(frozen=True)
class AutoLayout:
    """Auto-layout settings of a frame-like container."""

    mode: LayoutMode = LayoutMode.NONE
    primary_align: AxisAlign = AxisAlign.MIN
    counter_align: AxisAlign = AxisAlign.MIN
    padding: Padding = field(default_factory=Padding)
    item_spacing: float = 0.0
    primary_sizing: AxisSizingMode = AxisSizingMode.AUTO
    counter_sizing: AxisSizingMode = AxisSizingMode.AUTO


@dataclass(frozen=True)
class LayoutChild:
    """How a node participates in its parent's auto-layout."""

    align: LayoutAlign = LayoutAlign.INHERIT
    grow: float | None = None


@dataclass(frozen=True)
class Constraints:
    horizontal: Constraint = Constraint.MIN
    vertical: Constraint = Constraint.MIN


@dataclass(frozen=True)
class PathGeometry:
    """One SVG path of a vector node's fill geometry."""

    path: str
    winding_rule: str = "NONZERO"


@dataclass(frozen=True)
class Effect:
    type_name: str
    visible: bool = True
    radius: float = 0.0
    offset: Vec2 | None = None
    color: Color | None = None


@dataclass(frozen=True)
class TextStyle:
    font_family: str
    font_post_script_name: str | None = None
    font_weight: float = 400
    font_size: float = 12
    text_align_horizontal: str = "LEFT"
    text_align_vertical: str = "TOP"
    line_height_px: float | None = None
    letter_spacing: float = 0.0

    @property
    def font_name(self) -> str:
        """Logical font name used for font table lookups."""
        return self.font_post_script_name or self.font_family


@dataclass(frozen=True, kw_only=True)
class SceneNode:
    """Fields shared by every node variant."""

    id: str
    name: str = ""
    visible: bool = True
    binding_key: str | None = None
    # True when the key was taken from the component name, not set explicitly.
    binding_key_inferred: bool = False

    @property
    def children(self) -> tuple["SceneNode", ...]:
        return ()


@dataclass(frozen=True, kw_only=True)
class UnsupportedNode(SceneNode):
    """A node type without a conversion (slices, stickies, sections, ...)."""

    type_name: str


@dataclass(frozen=True, kw_only=True)
class LayoutParticipant(SceneNode):
    transform: Transform
    layout_child: LayoutChild = field(default_factory=LayoutChild)
    constraints: Constraints = field(default_factory=Constraints)
    effects: tuple[Effect, ...] = ()


@dataclass(frozen=True, kw_only=True)
class Filled(LayoutParticipant):
    """A participant with its own fills and strokes."""

    fill: FillStyle = field(default_factory=FillStyle)


@dataclass(frozen=True, kw_only=True)
class GroupNode(LayoutParticipant):
    nodes: tuple[SceneNode, ...] = ()

    @property
    def children(self) -> tuple[SceneNode, ...]:
        return self.nodes


@dataclass(frozen=True, kw_only=True)
class FrameNode(Filled):
    corners: CornerRadii = field(default_factory=CornerRadii)
    layout: AutoLayout = field(default_factory=AutoLayout)
    clips_content: bool = False
    nodes: tuple[SceneNode, ...] = ()

    @property
    def children(self) -> tuple[SceneNode, ...]:
        return self.nodes


@dataclass(frozen=True, kw_only=True)
class InstanceNode(FrameNode):
    component_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class VectorNode(Filled):
    fill_geometry: tuple[PathGeometry, ...] = ()


@dataclass(frozen=True, kw_only=True)
class RectangleNode(VectorNode):
    corners: CornerRadii = field(default_factory=CornerRadii)


@dataclass(frozen=True, kw_only=True)
class EllipseNode(VectorNode):
    pass


@dataclass(frozen=True, kw_only=True)
class LineNode(VectorNode):
    pass


@dataclass(frozen=True, kw_only=True)
class PolygonNode(VectorNode):
    point_count: int = 3


@dataclass(frozen=True, kw_only=True)
class StarNode(VectorNode):
    point_count: int = 5
    inner_radius: float = 0.382


@dataclass(frozen=True, kw_only=True)
class TextNode(Filled):
    characters: str = ""
    style: TextStyle | None = None


@dataclass(frozen=True, kw_only=True)
class PageNode(SceneNode):
    nodes: tuple[SceneNode, ...] = ()
    background: Color | None = None

    @property
    def children(self) -> tuple[SceneNode, ...]:
        return self.nodes


@dataclass(frozen=True)
class Document:
    """A parsed design document."""

    file_key: str
    name: str
    pages: tuple[PageNode, ...]
    version: str | None = None
    components: dict[str, str] = field(default_factory=dict, hash=False, compare=False)


def iter_nodes(node: SceneNode):
    """Yield a node and all of its descendants, depth first in source order."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)
