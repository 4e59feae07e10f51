"""Translate auto-layout and constraints into anchors, layout groups and sizing rules.

Every rule here sets values once from the source node; nothing is solved
iteratively, so stretch children inside hug-content containers compose
without feedback between the two.
"""

from figma_ui.models.node import (
    AutoLayout,
    AxisAlign,
    AxisSizingMode,
    Constraint,
    Constraints,
    FrameNode,
    LayoutAlign,
    LayoutMode,
    LayoutParticipant,
    Transform,
)
from figma_ui.models.output import (
    AnchorPreset,
    ContentSizeFitter,
    FitMode,
    LayoutElement,
    LayoutGroup,
    OutputNode,
)

# (layout mode, primary axis alignment, counter axis alignment) -> preset.
# Horizontal containers align along x first, vertical containers along y first.
CHILD_ALIGNMENT: dict[tuple[LayoutMode, AxisAlign, AxisAlign], AnchorPreset] = {
    (LayoutMode.HORIZONTAL, AxisAlign.MIN, AxisAlign.MIN): AnchorPreset.UPPER_LEFT,
    (LayoutMode.HORIZONTAL, AxisAlign.MIN, AxisAlign.CENTER): AnchorPreset.MIDDLE_LEFT,
    (LayoutMode.HORIZONTAL, AxisAlign.MIN, AxisAlign.MAX): AnchorPreset.LOWER_LEFT,
    (LayoutMode.HORIZONTAL, AxisAlign.CENTER, AxisAlign.MIN): AnchorPreset.UPPER_CENTER,
    (LayoutMode.HORIZONTAL, AxisAlign.CENTER, AxisAlign.CENTER): AnchorPreset.MIDDLE_CENTER,
    (LayoutMode.HORIZONTAL, AxisAlign.CENTER, AxisAlign.MAX): AnchorPreset.LOWER_CENTER,
    (LayoutMode.HORIZONTAL, AxisAlign.MAX, AxisAlign.MIN): AnchorPreset.UPPER_RIGHT,
    (LayoutMode.HORIZONTAL, AxisAlign.MAX, AxisAlign.CENTER): AnchorPreset.MIDDLE_RIGHT,
    (LayoutMode.HORIZONTAL, AxisAlign.MAX, AxisAlign.MAX): AnchorPreset.LOWER_RIGHT,
    (LayoutMode.VERTICAL, AxisAlign.MIN, AxisAlign.MIN): AnchorPreset.UPPER_LEFT,
    (LayoutMode.VERTICAL, AxisAlign.MIN, AxisAlign.CENTER): AnchorPreset.UPPER_CENTER,
    (LayoutMode.VERTICAL, AxisAlign.MIN, AxisAlign.MAX): AnchorPreset.UPPER_RIGHT,
    (LayoutMode.VERTICAL, AxisAlign.CENTER, AxisAlign.MIN): AnchorPreset.MIDDLE_LEFT,
    (LayoutMode.VERTICAL, AxisAlign.CENTER, AxisAlign.CENTER): AnchorPreset.MIDDLE_CENTER,
    (LayoutMode.VERTICAL, AxisAlign.CENTER, AxisAlign.MAX): AnchorPreset.MIDDLE_RIGHT,
    (LayoutMode.VERTICAL, AxisAlign.MAX, AxisAlign.MIN): AnchorPreset.LOWER_LEFT,
    (LayoutMode.VERTICAL, AxisAlign.MAX, AxisAlign.CENTER): AnchorPreset.LOWER_CENTER,
    (LayoutMode.VERTICAL, AxisAlign.MAX, AxisAlign.MAX): AnchorPreset.LOWER_RIGHT,
}


def child_alignment(layout: AutoLayout) -> AnchorPreset:
    """Preset for a container; pairs outside MIN/CENTER/MAX gather upper-left."""
    key = (layout.mode, layout.primary_align, layout.counter_align)
    return CHILD_ALIGNMENT.get(key, AnchorPreset.UPPER_LEFT)


def add_layout_group(output: OutputNode, frame: FrameNode) -> LayoutGroup | None:
    layout = frame.layout
    if layout.mode is LayoutMode.NONE:
        return None
    padding = layout.padding
    return output.attach(
        LayoutGroup(
            horizontal=layout.mode is LayoutMode.HORIZONTAL,
            child_alignment=child_alignment(layout),
            padding=(padding.left, padding.right, padding.top, padding.bottom),
            spacing=layout.item_spacing,
        )
    )


def add_content_size_fitter(output: OutputNode, frame: FrameNode) -> ContentSizeFitter | None:
    """Hug contents on each axis whose sizing mode is AUTO."""
    layout = frame.layout
    if layout.mode is LayoutMode.NONE:
        return None
    primary_auto = layout.primary_sizing is AxisSizingMode.AUTO
    counter_auto = layout.counter_sizing is AxisSizingMode.AUTO
    if not (primary_auto or counter_auto):
        return None

    horizontal = layout.mode is LayoutMode.HORIZONTAL
    width_auto = primary_auto if horizontal else counter_auto
    height_auto = counter_auto if horizontal else primary_auto
    return output.attach(
        ContentSizeFitter(
            horizontal_fit=FitMode.PREFERRED_SIZE if width_auto else FitMode.UNCONSTRAINED,
            vertical_fit=FitMode.PREFERRED_SIZE if height_auto else FitMode.UNCONSTRAINED,
        )
    )


def size_layout_child(
    container: OutputNode, mode: LayoutMode, child: OutputNode, source: LayoutParticipant
) -> LayoutElement:
    """Give a child of a layout container its fixed or flexible size per axis."""
    group = container.require(LayoutGroup)
    element = child.get(LayoutElement) or child.attach(LayoutElement())
    size = source.transform
    horizontal = mode is LayoutMode.HORIZONTAL

    # Counter axis: stretch or keep the authored size.
    if horizontal:
        group.child_control_height = True
        if source.layout_child.align is LayoutAlign.STRETCH:
            element.flexible_height = 1
        else:
            element.min_height = size.height
    else:
        group.child_control_width = True
        if source.layout_child.align is LayoutAlign.STRETCH:
            element.flexible_width = 1
        else:
            element.min_width = size.width

    # Primary axis: grow or keep the authored size.
    grow = source.layout_child.grow or 0
    if horizontal:
        group.child_control_width = True
        if grow > 0:
            element.flexible_width = 1
            element.min_width = 1
        else:
            element.min_width = size.width
    else:
        group.child_control_height = True
        if grow > 0:
            element.flexible_height = 1
            element.min_height = 1
        else:
            element.min_height = size.height
    return element


def _anchor_axis(constraint: Constraint, start: float, length: float, parent: float):
    """(anchor_min, anchor_max, offset_min, offset_max) along one axis."""
    end = start + length
    if parent <= 0:
        return 0.0, 0.0, start, end
    if constraint is Constraint.MAX:
        anchors = (1.0, 1.0)
    elif constraint is Constraint.CENTER:
        anchors = (0.5, 0.5)
    elif constraint is Constraint.STRETCH:
        anchors = (0.0, 1.0)
    elif constraint is Constraint.SCALE:
        anchors = (start / parent, end / parent)
    else:
        anchors = (0.0, 0.0)
    return anchors[0], anchors[1], start - anchors[0] * parent, end - anchors[1] * parent


def anchor_to_parent(
    output: OutputNode, transform: Transform, constraints: Constraints, parent_size: Transform
) -> None:
    """Place a node by its constraints, as anchors plus offsets in its parent."""
    ax_min, ax_max, ox_min, ox_max = _anchor_axis(
        constraints.horizontal, transform.x, transform.width, parent_size.width
    )
    ay_min, ay_max, oy_min, oy_max = _anchor_axis(
        constraints.vertical, transform.y, transform.height, parent_size.height
    )
    rect = output.rect
    rect.anchor_min = (ax_min, ay_min)
    rect.anchor_max = (ax_max, ay_max)
    rect.offset_min = (ox_min, oy_min)
    rect.offset_max = (ox_max, oy_max)
    rect.rotation = transform.rotation
