"""Ordered converter lookup.

Behaviour converters are scanned first, in registration order, then
structural converters the same way. The first converter accepting the node
wins, so registration order is part of the result.
"""

from typing import TYPE_CHECKING

from loguru import logger

from figma_ui.core.converters.behaviours import default_behaviour_converters
from figma_ui.core.converters.nodes import default_node_converters
from figma_ui.models.node import SceneNode
from figma_ui.protocols import ConverterKind, ConverterProtocol

if TYPE_CHECKING:
    from figma_ui.core.context import ConversionContext


class ConverterRegistry:
    """Converters in priority order, seeded with the defaults on first use.

    Seeding fills whichever of the two lists is still empty, once per
    registry. A registry must not serve two passes at the same time.
    """

    def __init__(self, converters: list[ConverterProtocol] | None = None) -> None:
        self._behaviours: list[ConverterProtocol] = []
        self._structural: list[ConverterProtocol] = []
        self._seeded = False
        for converter in converters or []:
            self.register(converter)

    def __len__(self) -> int:
        return len(self._behaviours) + len(self._structural)

    @property
    def behaviours(self) -> tuple[ConverterProtocol, ...]:
        return tuple(self._behaviours)

    @property
    def structural(self) -> tuple[ConverterProtocol, ...]:
        return tuple(self._structural)

    def register(self, converter: ConverterProtocol) -> "ConverterRegistry":
        """Append a converter after those of its kind already registered."""
        if converter.kind is ConverterKind.BEHAVIOUR:
            self._behaviours.append(converter)
        elif converter.kind is ConverterKind.STRUCTURAL:
            self._structural.append(converter)
        else:
            msg = f"Unknown converter kind: {converter.kind!r}"
            raise ValueError(msg)
        return self

    def add_default_converters(self) -> "ConverterRegistry":
        """Append the default converters behind the ones already registered."""
        for behaviour in default_behaviour_converters():
            self.register(behaviour)
        for structural in default_node_converters():
            self.register(structural)
        self._seeded = True
        return self

    def ensure_defaults(self) -> None:
        if self._seeded:
            return
        self._seeded = True
        if not self._behaviours:
            self._behaviours.extend(default_behaviour_converters())
        if not self._structural:
            self._structural.extend(default_node_converters())
        logger.debug(
            "Converter registry ready: {} behaviour, {} structural",
            len(self._behaviours),
            len(self._structural),
        )

    def resolve_structural(
        self, node: SceneNode, context: "ConversionContext"
    ) -> ConverterProtocol | None:
        return next((c for c in self._structural if c.can_convert(node, context)), None)

    def resolve(self, node: SceneNode, context: "ConversionContext") -> ConverterProtocol | None:
        """Return the converter for a node, or None if nothing accepts it."""
        behaviour = next((c for c in self._behaviours if c.can_convert(node, context)), None)
        if behaviour is not None:
            return behaviour
        return self.resolve_structural(node, context)
