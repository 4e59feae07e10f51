"""CLI: convert design files into UI trees and images."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from figma_ui.config import DEFAULT_SAMPLE_COUNT, DEFAULT_TEXTURE_SIZE
from figma_ui.core.builder import SceneTreeBuilder
from figma_ui.core.context import FontAsset, ImportOptions, collect_font_names
from figma_ui.core.importer.json_reader import load_document
from figma_ui.core.raster.rasterizer import RasterOptions
from figma_ui.logging_config import configure_logging
from figma_ui.models.node import Document
from figma_ui.models.result import LogLevel
from figma_ui.writer import FileWriter, write_result

app = typer.Typer(help="Convert design-tool documents into UI trees and images.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors"),
) -> None:
    configure_logging(verbose=verbose, quiet=quiet)


def _load(document: Path) -> Document:
    if not document.exists():
        logger.error("Document not found: {}", document)
        raise typer.Exit(1)
    try:
        return load_document(document)
    except (ValueError, KeyError) as e:
        logger.error("Cannot read {}: {}", document, e)
        raise typer.Exit(1) from e


def _load_fonts(fonts_file: Path | None) -> dict[str, FontAsset]:
    """Font table from a JSON object of logical name -> font file path."""
    if fonts_file is None:
        return {}
    try:
        raw = json.loads(fonts_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error("Cannot read font table {}: {}", fonts_file, e)
        raise typer.Exit(1) from e
    if not isinstance(raw, dict) or not all(isinstance(p, str) for p in raw.values()):
        logger.error("Font table {} must be a JSON object of font file paths", fonts_file)
        raise typer.Exit(1)
    base = fonts_file.parent
    return {name: FontAsset(name=name, path=base / path) for name, path in raw.items()}


@app.command()
def convert(
    document: Path = typer.Argument(..., help="Design file saved as JSON"),
    out_dir: Path = typer.Argument(..., help="Output directory"),
    pages: Annotated[
        list[str] | None,
        typer.Option("--page", "-p", help="Page id to import (repeatable, default all)"),
    ] = None,
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Abort on the first error"),
    texture_size: int = typer.Option(
        DEFAULT_TEXTURE_SIZE, "--texture-size", help="Max image dimension in pixels"
    ),
    sample_count: int = typer.Option(
        DEFAULT_SAMPLE_COUNT, "--sample-count", help="Anti-aliasing samples per pixel"
    ),
    fonts_file: Annotated[
        Path | None,
        typer.Option("--fonts", help="JSON file mapping font names to font files"),
    ] = None,
    fallback_font: Annotated[
        Path | None,
        typer.Option("--fallback-font", help="Font file used for unmapped fonts"),
    ] = None,
    clean: bool = typer.Option(False, "--clean", help="Remove stale files from OUT_DIR"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Do not write anything"),
) -> None:
    """Convert a document and write page trees, images and dependencies."""
    doc = _load(document)
    try:
        raster = RasterOptions(texture_size=texture_size, sample_count=sample_count)
    except ValueError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e

    options = ImportOptions(
        selected_pages=frozenset(pages) if pages else None,
        raster=raster,
        fonts=_load_fonts(fonts_file),
        fallback_font=(
            FontAsset(name=fallback_font.stem, path=fallback_font) if fallback_font else None
        ),
        fail_on_error=fail_fast,
    )

    result = SceneTreeBuilder().import_document(doc, options)
    if not result.ok:
        logger.error("Conversion failed: {}", result.error)
        raise typer.Exit(1)

    writer = FileWriter(out_dir, dry_run=dry_run)
    write_result(writer, result)
    writer.finalize(delete_others=clean)

    warnings = sum(1 for entry in result.logs if entry.level is LogLevel.WARNING)
    errors = sum(1 for entry in result.logs if entry.level is LogLevel.ERROR)
    typer.echo(
        f"Converted {len(result.pages)} page(s), {len(result.images)} image(s), "
        f"{warnings} warning(s), {errors} error(s)"
    )


@app.command()
def fonts(
    document: Path = typer.Argument(..., help="Design file saved as JSON"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Print a font table skeleton"),
) -> None:
    """List the fonts used by text nodes."""
    names = collect_font_names(_load(document))
    if output_json:
        typer.echo(json.dumps({name: "" for name in names}, indent=2))
        return
    for name in names:
        typer.echo(name)


@app.command(name="pages")
def pages_cmd(
    document: Path = typer.Argument(..., help="Design file saved as JSON"),
) -> None:
    """List page ids and names."""
    doc = _load(document)
    for page in doc.pages:
        typer.echo(f"{page.id}\t{page.name}\t{len(page.children)} top-level node(s)")


if __name__ == "__main__":
    app()
