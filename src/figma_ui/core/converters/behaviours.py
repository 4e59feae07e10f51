"""Behaviour converters: matched by a node's binding key, tried before structural ones."""

from collections.abc import Callable
from typing import Any

from loguru import logger

from figma_ui.core.context import ConversionContext
from figma_ui.models.node import SceneNode
from figma_ui.models.output import Behaviour, OutputNode
from figma_ui.protocols import ConverterKind

BehaviourSetup = Callable[[SceneNode, OutputNode, ConversionContext], None]


def _convert_structurally(node: SceneNode, context: ConversionContext) -> OutputNode:
    converter = context.registry.resolve_structural(node, context)
    if converter is None:
        msg = f"No structural converter for {type(node).__name__} {node.id!r}"
        raise LookupError(msg)
    return converter.convert(node, context)


class BehaviourConverter:
    """Converts nodes bound to one key and attaches a behaviour to them.

    The node is built by the structural converter for its variant; the
    behaviour is layered on top, optionally customized by ``setup``.
    """

    kind = ConverterKind.BEHAVIOUR

    def __init__(
        self,
        binding_key: str,
        *,
        properties: dict[str, Any] | None = None,
        setup: BehaviourSetup | None = None,
    ) -> None:
        if not binding_key:
            msg = "Behaviour converter binding key must not be empty"
            raise ValueError(msg)
        self.binding_key = binding_key
        self.properties = properties or {}
        self.setup = setup

    def __repr__(self) -> str:
        return f"BehaviourConverter({self.binding_key!r})"

    def can_convert(self, node: SceneNode, context: ConversionContext) -> bool:
        return (
            node.binding_key == self.binding_key
            and context.registry.resolve_structural(node, context) is not None
        )

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        output = _convert_structurally(node, context)
        output.attach(Behaviour(binding_key=self.binding_key, properties=dict(self.properties)))
        if self.setup is not None:
            self.setup(node, output, context)
        return output


class UnknownBehaviourConverter:
    """Catch-all for bound nodes no other behaviour converter claimed."""

    kind = ConverterKind.BEHAVIOUR

    def __repr__(self) -> str:
        return "UnknownBehaviourConverter()"

    def can_convert(self, node: SceneNode, context: ConversionContext) -> bool:
        return (
            node.binding_key is not None
            and context.registry.resolve_structural(node, context) is not None
        )

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        message = f"No behaviour registered for binding key {node.binding_key!r} on {node.name!r}"
        if node.binding_key_inferred:
            logger.debug(message)
        else:
            context.log_warning(message, node.id)
        return _convert_structurally(node, context)


def default_behaviour_converters() -> list[UnknownBehaviourConverter]:
    return [UnknownBehaviourConverter()]
