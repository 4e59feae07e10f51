"""Convert design-tool documents into UI trees, images and dependency lists."""

from figma_ui.core.builder import SceneTreeBuilder
from figma_ui.core.context import FontAsset, ImportOptions
from figma_ui.core.converters.behaviours import BehaviourConverter
from figma_ui.core.converters.registry import ConverterRegistry
from figma_ui.core.importer.json_reader import load_document, parse_document_data
from figma_ui.core.raster.rasterizer import RasterOptions
from figma_ui.errors import ConversionError, FigmaImportError, RasterizationError
from figma_ui.models.result import ImportResult
from figma_ui.protocols import ConverterProtocol, EffectHook, LocalizationHook, WriterProtocol

__all__ = [
    "BehaviourConverter",
    "ConversionError",
    "ConverterProtocol",
    "ConverterRegistry",
    "EffectHook",
    "FigmaImportError",
    "FontAsset",
    "ImportOptions",
    "ImportResult",
    "LocalizationHook",
    "RasterOptions",
    "RasterizationError",
    "SceneTreeBuilder",
    "WriterProtocol",
    "load_document",
    "parse_document_data",
]
