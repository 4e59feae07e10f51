"""Shared test fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest

from figma_ui.core.builder import SceneTreeBuilder
from figma_ui.core.cache import AssetCaches
from figma_ui.core.context import ConversionContext, ImportOptions
from figma_ui.core.converters.registry import ConverterRegistry
from figma_ui.core.importer.json_reader import parse_document_data
from figma_ui.core.raster.rasterizer import RasterOptions
from figma_ui.models.node import Document

RED = {"r": 1.0, "g": 0.0, "b": 0.0, "a": 1.0}
WHITE = {"r": 1.0, "g": 1.0, "b": 1.0, "a": 1.0}


def solid(color: dict[str, float] = RED, **extra: Any) -> dict[str, Any]:
    return {"type": "SOLID", "color": color, **extra}


def box(x: float, y: float, width: float, height: float) -> dict[str, float]:
    return {"x": x, "y": y, "width": width, "height": height}


def frame(
    node_id: str, children: list[dict[str, Any]] | None = None, **extra: Any
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": node_id,
        "name": extra.pop("name", f"Frame {node_id}"),
        "type": "FRAME",
        "absoluteBoundingBox": extra.pop("absoluteBoundingBox", box(0, 0, 200, 100)),
        "fills": extra.pop("fills", []),
        "children": children or [],
    }
    raw.update(extra)
    return raw


def rectangle(node_id: str, **extra: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": node_id,
        "name": extra.pop("name", f"Rect {node_id}"),
        "type": "RECTANGLE",
        "absoluteBoundingBox": extra.pop("absoluteBoundingBox", box(0, 0, 40, 20)),
        "fills": extra.pop("fills", [solid()]),
    }
    raw.update(extra)
    return raw


def text(
    node_id: str, characters: str = "Hello", font: str = "Inter", **extra: Any
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": node_id,
        "name": extra.pop("name", f"Text {node_id}"),
        "type": "TEXT",
        "absoluteBoundingBox": extra.pop("absoluteBoundingBox", box(0, 0, 80, 16)),
        "characters": characters,
        "style": {"fontFamily": font, "fontSize": 14, "textAlignHorizontal": "CENTER"},
        "fills": extra.pop("fills", [solid(WHITE)]),
    }
    raw.update(extra)
    return raw


def page(page_id: str, children: list[dict[str, Any]], name: str | None = None) -> dict[str, Any]:
    name = name or f"Page {page_id}"
    return {"id": page_id, "name": name, "type": "CANVAS", "children": children}


def document_data(
    *pages: dict[str, Any], components: dict[str, Any] | None = None
) -> dict[str, Any]:
    return {
        "name": "Test file",
        "version": "42",
        "document": {"id": "0:0", "type": "DOCUMENT", "children": list(pages)},
        "components": components or {},
    }


SAMPLE_DOCUMENT = document_data(
    page(
        "1:0",
        [
            frame(
                "1:1",
                [
                    rectangle(
                        "1:2",
                        name="Button",
                        cornerRadius=8,
                        absoluteBoundingBox=box(10, 10, 40, 20),
                        layoutAlign="STRETCH",
                    ),
                    text("1:3", absoluteBoundingBox=box(58, 10, 80, 16), layoutGrow=1),
                ],
                name="Toolbar",
                layoutMode="HORIZONTAL",
                primaryAxisAlignItems="CENTER",
                counterAxisAlignItems="MIN",
                paddingLeft=10,
                paddingRight=10,
                paddingTop=10,
                paddingBottom=10,
                itemSpacing=8,
                primaryAxisSizingMode="FIXED",
                counterAxisSizingMode="AUTO",
                fills=[solid(WHITE)],
                cornerRadius=4,
            ),
            rectangle("1:4", name="Loose shape"),
        ],
        name="Home",
    ),
    page(
        "2:0",
        [
            frame(
                "2:1",
                [
                    rectangle(
                        "2:2",
                        absoluteBoundingBox=box(150, 50, 40, 20),
                        constraints={"horizontal": "RIGHT", "vertical": "TOP_BOTTOM"},
                    ),
                    {"id": "2:3", "name": "Slice", "type": "SLICE"},
                ],
                name="Card",
                absoluteBoundingBox=box(0, 0, 200, 100),
            ),
        ],
        name="Settings",
    ),
)


@pytest.fixture
def sample_data() -> dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_DOCUMENT))


@pytest.fixture
def sample_document(sample_data: dict[str, Any]) -> Document:
    return parse_document_data(sample_data, file_key="sample")


@pytest.fixture
def sample_file(tmp_path: Path, sample_data: dict[str, Any]) -> Path:
    path = tmp_path / "sample.json"
    path.write_text(json.dumps(sample_data))
    return path


@pytest.fixture
def raster() -> RasterOptions:
    """Small textures keep rasterization fast."""
    return RasterOptions(texture_size=64, sample_count=1)


@pytest.fixture
def options(raster: RasterOptions) -> ImportOptions:
    return ImportOptions(raster=raster, fail_on_error=False)


@pytest.fixture
def builder() -> SceneTreeBuilder:
    return SceneTreeBuilder()


@pytest.fixture
def context(
    builder: SceneTreeBuilder, sample_document: Document, options: ImportOptions
) -> ConversionContext:
    """A context for calling converters directly, outside a full pass."""
    builder.registry.ensure_defaults()
    return ConversionContext(
        registry=builder.registry,
        document=sample_document,
        options=options,
        caches=builder.caches,
        builder=builder,
    )


@pytest.fixture
def registry() -> ConverterRegistry:
    return ConverterRegistry()


@pytest.fixture
def caches() -> AssetCaches:
    return AssetCaches()
