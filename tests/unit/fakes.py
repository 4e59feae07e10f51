"""Fake converters, hooks and writers for testing the importer."""

import json
from typing import Any

from figma_ui.core.context import ConversionContext
from figma_ui.errors import ConversionError
from figma_ui.models.node import SceneNode, TextNode
from figma_ui.models.output import EffectAttachment, LocalizedText, OutputNode
from figma_ui.protocols import ConverterKind


class StaticConverter:
    """Accepts nodes by id (or every node) and records what it converted."""

    def __init__(
        self,
        *,
        kind: ConverterKind = ConverterKind.STRUCTURAL,
        node_ids: set[str] | None = None,
        output_kind: str = "static",
    ) -> None:
        self.kind = kind
        self.node_ids = node_ids
        self.output_kind = output_kind
        self.converted: list[str] = []

    def can_convert(self, node: SceneNode, context: ConversionContext) -> bool:
        return self.node_ids is None or node.id in self.node_ids

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        self.converted.append(node.id)
        return context.create_node(node, self.output_kind)


class FailingConverter(StaticConverter):
    """Creates the node, then raises the configured error."""

    def __init__(self, error: Exception, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.error = error
        self.dependencies_at_failure: list[str] = []

    def convert(self, node: SceneNode, context: ConversionContext) -> OutputNode:
        super().convert(node, context)
        self.dependencies_at_failure = context.caches.dependencies.keys()
        raise self.error


def conversion_error(node_id: str) -> ConversionError:
    return ConversionError(f"cannot convert {node_id}", node_id=node_id)


class FakeLocalizationHook:
    """Localizes every text node whose characters start with a marker."""

    def __init__(self, marker: str = "@") -> None:
        self.marker = marker
        self.applied: list[str] = []

    def can_apply(self, node: TextNode, context: ConversionContext) -> bool:
        return node.characters.startswith(self.marker)

    def apply(self, node: TextNode, output: OutputNode, context: ConversionContext) -> None:
        self.applied.append(node.id)
        output.attach(LocalizedText(key=node.characters[len(self.marker) :], table="ui"))


class RecordingEffectHook:
    """Attaches an EffectAttachment per visible effect and records calls."""

    def __init__(self) -> None:
        self.applied: list[str] = []

    def can_apply(self, node: SceneNode, context: ConversionContext) -> bool:
        return True

    def apply(self, node: SceneNode, output: OutputNode, context: ConversionContext) -> None:
        self.applied.append(node.id)
        effect = next(e for e in node.effects if e.visible)  # type: ignore[attr-defined]
        output.attach(
            EffectAttachment(type_name=effect.type_name, properties={"radius": effect.radius})
        )


class FailingEffectHook:
    """Raises the configured error for every node it is offered."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    def can_apply(self, node: SceneNode, context: ConversionContext) -> bool:
        return True

    def apply(self, node: SceneNode, output: OutputNode, context: ConversionContext) -> None:
        raise self.error


class FakeWriter:
    """In-memory fake for FileWriter.

    Stores files in a dict and implements unique name collision logic.
    """

    def __init__(self) -> None:
        self.files: dict[str, str | bytes] = {}
        self._unique_names: set[str] = set()

    def make_data_file(
        self,
        fname_rel: str,
        *,
        contents: str | bytes | None = None,
        data: Any = None,
    ) -> None:
        """Store file contents in memory."""
        if contents is not None:
            self.files[fname_rel] = contents
        else:
            self.files[fname_rel] = json.dumps(data, sort_keys=True, indent=4) + "\n"

    def make_unique_name(self, base: str, *, suffix: str = "") -> str:
        """Generate a unique name, appending -N on collision."""
        name = base
        count = 0
        while name + suffix in self._unique_names:
            count += 1
            name = f"{base}-{count}"
        self._unique_names.add(name + suffix)
        return name

    def read_json(self, fname_rel: str) -> Any:
        raw = self.files[fname_rel]
        assert isinstance(raw, str)
        return json.loads(raw)
