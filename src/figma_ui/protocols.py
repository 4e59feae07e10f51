"""Protocols for converters and the hooks callers plug into an import."""

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from figma_ui.core.context import ConversionContext
    from figma_ui.models.node import SceneNode, TextNode
    from figma_ui.models.output import OutputNode


class ConverterKind(Enum):
    """Behaviour converters are always tried before structural ones."""

    BEHAVIOUR = "behaviour"
    STRUCTURAL = "structural"


@runtime_checkable
class ConverterProtocol(Protocol):
    """Maps one source node to one output node."""

    kind: ConverterKind

    def can_convert(self, node: "SceneNode", context: "ConversionContext") -> bool:
        """Return True if this converter handles the node."""
        ...

    def convert(self, node: "SceneNode", context: "ConversionContext") -> "OutputNode":
        """Build the output node (and its subtree) for the source node."""
        ...


@runtime_checkable
class LocalizationHook(Protocol):
    """Offered every converted text node."""

    def can_apply(self, node: "TextNode", context: "ConversionContext") -> bool:
        """Return True if the text should be localized."""
        ...

    def apply(self, node: "TextNode", output: "OutputNode", context: "ConversionContext") -> None:
        """Attach localization data to the output node."""
        ...


@runtime_checkable
class EffectHook(Protocol):
    """Offered every converted node that carries visible effects."""

    def can_apply(self, node: "SceneNode", context: "ConversionContext") -> bool:
        """Return True if this hook handles the node's effects."""
        ...

    def apply(self, node: "SceneNode", output: "OutputNode", context: "ConversionContext") -> None:
        """Post-process the output node."""
        ...


@runtime_checkable
class WriterProtocol(Protocol):
    """Protocol for file writers receiving a finished import."""

    def make_data_file(
        self,
        fname_rel: str,
        *,
        contents: str | bytes | None = None,
        data: Any = None,
    ) -> None:
        """Write a file to the output directory."""
        ...

    def make_unique_name(self, base: str, *, suffix: str = "") -> str:
        """Generate a unique filename or prefix."""
        ...
