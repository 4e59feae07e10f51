"""Tests for converter registration and resolution order."""

from typing import Any

import pytest

from figma_ui.core.builder import SceneTreeBuilder
from figma_ui.core.context import ConversionContext, ImportOptions
from figma_ui.core.converters.behaviours import BehaviourConverter, UnknownBehaviourConverter
from figma_ui.core.converters.nodes import (
    FrameNodeConverter,
    InstanceNodeConverter,
    NodeConverter,
    RectangleNodeConverter,
    TextNodeConverter,
    VectorNodeConverter,
)
from figma_ui.core.converters.registry import ConverterRegistry
from figma_ui.errors import ConversionError
from figma_ui.models.node import (
    Document,
    FrameNode,
    InstanceNode,
    RectangleNode,
    TextNode,
    Transform,
    UnsupportedNode,
    VectorNode,
)
from figma_ui.models.output import Behaviour
from figma_ui.models.result import LogLevel
from figma_ui.protocols import ConverterKind, ConverterProtocol
from tests.unit.fakes import StaticConverter

BOX = Transform(x=0, y=0, width=10, height=10)


def _context(
    registry: ConverterRegistry, document: Document, options: ImportOptions
) -> ConversionContext:
    builder = SceneTreeBuilder(registry)
    return ConversionContext(
        registry=registry,
        document=document,
        options=options,
        caches=builder.caches,
        builder=builder,
    )


def _frame(**kwargs: Any) -> FrameNode:
    return FrameNode(id=kwargs.pop("id", "1:1"), transform=BOX, **kwargs)


def test_seeds_defaults_once(registry: ConverterRegistry) -> None:
    """ensure_defaults fills an empty registry and is idempotent."""
    registry.ensure_defaults()
    first = (registry.behaviours, registry.structural)
    registry.ensure_defaults()

    assert (registry.behaviours, registry.structural) == first
    assert len(registry.behaviours) == 1
    assert isinstance(registry.behaviours[0], UnknownBehaviourConverter)
    assert len(registry.structural) == 10


def test_seeding_keeps_caller_structural_converters(registry: ConverterRegistry) -> None:
    """Only the empty list is seeded; caller converters are not displaced."""
    custom = StaticConverter()
    registry.register(custom)

    registry.ensure_defaults()

    assert registry.structural == (custom,)
    assert len(registry.behaviours) == 1


def test_add_default_converters_appends_behind_caller_converters(
    registry: ConverterRegistry,
) -> None:
    """Caller converters keep priority over the defaults."""
    custom = StaticConverter()
    registry.register(custom).add_default_converters()
    registry.ensure_defaults()

    assert registry.structural[0] is custom
    assert len(registry.structural) == 11


def test_register_rejects_unknown_kind(registry: ConverterRegistry) -> None:
    converter = StaticConverter()
    converter.kind = "other"  # type: ignore[assignment]

    with pytest.raises(ValueError, match="Unknown converter kind"):
        registry.register(converter)


def test_default_converters_follow_protocol(registry: ConverterRegistry) -> None:
    registry.ensure_defaults()

    for converter in registry.behaviours + registry.structural:
        assert isinstance(converter, ConverterProtocol)


def test_structural_resolution_matches_exact_variant(context: ConversionContext) -> None:
    """Instances and rectangles are not taken by their base variant's converter."""
    registry = context.registry

    assert isinstance(registry.resolve(_frame(), context), FrameNodeConverter)
    assert isinstance(
        registry.resolve(InstanceNode(id="1:2", transform=BOX), context), InstanceNodeConverter
    )
    assert isinstance(
        registry.resolve(RectangleNode(id="1:3", transform=BOX), context), RectangleNodeConverter
    )
    vector = registry.resolve(VectorNode(id="1:4", transform=BOX), context)
    assert type(vector) is VectorNodeConverter
    text = registry.resolve(TextNode(id="1:5", transform=BOX), context)
    assert isinstance(text, TextNodeConverter)


def test_unsupported_node_resolves_to_none(context: ConversionContext) -> None:
    node = UnsupportedNode(id="1:9", type_name="SLICE")

    assert context.registry.resolve(node, context) is None


def test_resolution_is_deterministic(context: ConversionContext) -> None:
    """The same node resolves to the same converter instance every time."""
    node = _frame()

    first = context.registry.resolve(node, context)

    assert all(context.registry.resolve(node, context) is first for _ in range(5))


def test_behaviour_converters_win_over_structural(
    registry: ConverterRegistry, sample_document: Document, options: ImportOptions
) -> None:
    """A node with a matching binding key goes to the behaviour converter."""
    button = BehaviourConverter("ui.button", properties={"clickable": True})
    registry.register(button)
    registry.ensure_defaults()
    context = _context(registry, sample_document, options)

    assert registry.resolve(_frame(binding_key="ui.button"), context) is button
    assert isinstance(registry.resolve(_frame(), context), FrameNodeConverter)


def test_first_registered_match_wins(
    registry: ConverterRegistry, sample_document: Document, options: ImportOptions
) -> None:
    first = StaticConverter(node_ids={"1:1"})
    second = StaticConverter()
    registry.register(first).register(second)
    registry.ensure_defaults()
    context = _context(registry, sample_document, options)

    assert registry.resolve(_frame(), context) is first
    assert registry.resolve(_frame(id="1:2"), context) is second


def test_behaviour_without_structural_counterpart_does_not_match(
    registry: ConverterRegistry, sample_document: Document, options: ImportOptions
) -> None:
    """A bound node whose variant has no structural converter is left unmatched."""
    registry.register(BehaviourConverter("ui.slice"))
    registry.ensure_defaults()
    context = _context(registry, sample_document, options)
    node = UnsupportedNode(id="1:9", type_name="SLICE", binding_key="ui.slice")

    assert registry.resolve(node, context) is None


def test_behaviour_converter_attaches_behaviour(
    registry: ConverterRegistry, sample_document: Document, options: ImportOptions
) -> None:
    calls: list[str] = []
    button = BehaviourConverter(
        "ui.button",
        properties={"clickable": True},
        setup=lambda node, output, context: calls.append(node.id),
    )
    registry.register(button)
    registry.ensure_defaults()
    context = _context(registry, sample_document, options)

    output = button.convert(_frame(binding_key="ui.button"), context)

    assert output.kind == "frame"
    assert output.require(Behaviour) == Behaviour("ui.button", {"clickable": True})
    assert calls == ["1:1"]


def test_behaviour_converter_requires_key() -> None:
    with pytest.raises(ValueError, match="must not be empty"):
        BehaviourConverter("")


def test_unknown_binding_key_warns_and_converts_structurally(context: ConversionContext) -> None:
    node = _frame(binding_key="ui.mystery")

    converter = context.registry.resolve(node, context)
    assert isinstance(converter, UnknownBehaviourConverter)
    output = converter.convert(node, context)

    assert output.kind == "frame"
    assert not output.has(Behaviour)
    assert [entry.level for entry in context.logs] == [LogLevel.WARNING]
    assert "ui.mystery" in context.logs[0].message


def test_inferred_binding_key_converts_without_warning(context: ConversionContext) -> None:
    """Instances keyed by their component name are too common to warn about."""
    node = InstanceNode(
        id="1:2", transform=BOX, binding_key="PrimaryButton", binding_key_inferred=True
    )

    converter = context.registry.resolve(node, context)
    assert isinstance(converter, UnknownBehaviourConverter)
    output = converter.convert(node, context)

    assert output.kind == "instance"
    assert context.logs == []


def test_structural_converter_rejects_other_variants(context: ConversionContext) -> None:
    rect = RectangleNode(id="1:3", transform=BOX)

    with pytest.raises(ConversionError, match="RectangleNode '1:3' is not a TextNode") as info:
        TextNodeConverter().convert(rect, context)

    assert info.value.node_id == "1:3"
    assert "1:3" not in context.caches.nodes


def test_node_converter_base_is_abstract() -> None:
    with pytest.raises(TypeError):
        NodeConverter()  # type: ignore[abstract]


def test_converter_kinds() -> None:
    assert BehaviourConverter("x").kind is ConverterKind.BEHAVIOUR
    assert FrameNodeConverter().kind is ConverterKind.STRUCTURAL
