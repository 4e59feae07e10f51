"""Output UI tree: nodes placed by anchors and offsets, plus behaviour attachments."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, TypeVar

from figma_ui.models.result import LogEntry


class AnchorPreset(Enum):
    """Where children of a layout group gather inside the container."""

    UPPER_LEFT = "upper_left"
    UPPER_CENTER = "upper_center"
    UPPER_RIGHT = "upper_right"
    MIDDLE_LEFT = "middle_left"
    MIDDLE_CENTER = "middle_center"
    MIDDLE_RIGHT = "middle_right"
    LOWER_LEFT = "lower_left"
    LOWER_CENTER = "lower_center"
    LOWER_RIGHT = "lower_right"


class FitMode(Enum):
    UNCONSTRAINED = "unconstrained"
    PREFERRED_SIZE = "preferred_size"


@dataclass
class RectTransform:
    """Placement relative to the parent rectangle.

    Anchors are normalized parent coordinates with (0, 0) at the top-left.
    Offsets are the distances from the anchor points to the node's
    top-left (``offset_min``) and bottom-right (``offset_max``) corners.
    """

    anchor_min: tuple[float, float] = (0.0, 0.0)
    anchor_max: tuple[float, float] = (0.0, 0.0)
    offset_min: tuple[float, float] = (0.0, 0.0)
    offset_max: tuple[float, float] = (0.0, 0.0)
    rotation: float = 0.0

    def stretch(self) -> None:
        """Fill the parent rectangle completely."""
        self.anchor_min = (0.0, 0.0)
        self.anchor_max = (1.0, 1.0)
        self.offset_min = (0.0, 0.0)
        self.offset_max = (0.0, 0.0)


@dataclass
class ImageAttachment:
    image_key: str
    sliced: bool = True
    color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    enabled: bool = True


@dataclass
class LayoutGroup:
    horizontal: bool
    child_alignment: AnchorPreset = AnchorPreset.UPPER_LEFT
    padding: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    spacing: float = 0.0
    child_control_width: bool = False
    child_control_height: bool = False
    child_force_expand_width: bool = False
    child_force_expand_height: bool = False


@dataclass
class LayoutElement:
    min_width: float | None = None
    min_height: float | None = None
    flexible_width: float | None = None
    flexible_height: float | None = None


@dataclass
class ContentSizeFitter:
    horizontal_fit: FitMode = FitMode.UNCONSTRAINED
    vertical_fit: FitMode = FitMode.UNCONSTRAINED


@dataclass
class ClipMask:
    show_graphic: bool = True


@dataclass
class TextAttachment:
    text: str
    font_name: str
    font_size: float
    font_asset: str | None = None
    color: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    align_horizontal: str = "LEFT"
    align_vertical: str = "TOP"
    line_height: float | None = None
    letter_spacing: float = 0.0


@dataclass
class LocalizedText:
    key: str
    table: str | None = None


@dataclass
class Behaviour:
    """A caller-defined behaviour bound to the node through its binding key."""

    binding_key: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class EffectAttachment:
    type_name: str
    properties: dict[str, Any] = field(default_factory=dict)


A = TypeVar("A")


class OutputNode:
    """One node of the generated UI tree.

    A node owns its children and its attachments. At most one attachment
    of each type is kept.
    """

    def __init__(self, node_id: str, name: str, kind: str) -> None:
        self.node_id = node_id
        self.name = name
        self.kind = kind
        self.active = True
        self.rect = RectTransform()
        self.parent: OutputNode | None = None
        self.children: list[OutputNode] = []
        self.logs: list[LogEntry] = []
        self._attachments: dict[type, Any] = {}

    def __repr__(self) -> str:
        return f"OutputNode({self.node_id!r}, {self.kind!r}, children={len(self.children)})"

    def add_child(self, child: "OutputNode") -> None:
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)

    def attach(self, attachment: A) -> A:
        kind = type(attachment)
        if kind in self._attachments:
            msg = f"{self.node_id!r} already has a {kind.__name__} attachment"
            raise ValueError(msg)
        self._attachments[kind] = attachment
        return attachment

    def get(self, kind: type[A]) -> A | None:
        return self._attachments.get(kind)

    def require(self, kind: type[A]) -> A:
        attachment = self.get(kind)
        if attachment is None:
            msg = f"{self.node_id!r} has no {kind.__name__} attachment"
            raise LookupError(msg)
        return attachment

    def has(self, kind: type) -> bool:
        return kind in self._attachments

    @property
    def attachments(self) -> tuple[Any, ...]:
        return tuple(self._attachments.values())

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, node_id: str) -> "OutputNode | None":
        return next((n for n in self.walk() if n.node_id == node_id), None)

    def release(self) -> None:
        """Detach from the tree and drop attachments."""
        if self.parent is not None and self in self.parent.children:
            self.parent.children.remove(self)
        self.parent = None
        self.children.clear()
        self._attachments.clear()

    def to_dict(self) -> dict[str, Any]:
        attachments = {}
        for attachment in self._attachments.values():
            data = asdict(attachment)
            attachments[type(attachment).__name__] = {
                key: value.value if isinstance(value, Enum) else value
                for key, value in data.items()
            }
        return {
            "id": self.node_id,
            "name": self.name,
            "kind": self.kind,
            "active": self.active,
            "rect": asdict(self.rect),
            "attachments": attachments,
            "logs": [entry.to_dict() for entry in self.logs],
            "children": [child.to_dict() for child in self.children],
        }
