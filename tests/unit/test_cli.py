"""Tests for the figma-ui CLI."""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from figma_ui.cli import app
from tests.unit.conftest import document_data, frame, page, text

runner = CliRunner()


@pytest.fixture(autouse=True)
def _drop_cli_log_handlers() -> Iterator[None]:
    """The CLI logs to the runner's stderr, which is closed after each invoke."""
    yield
    logger.remove()


def test_convert_writes_pages_images_and_dependencies(sample_file: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"

    result = runner.invoke(app, ["convert", str(sample_file), str(out)])

    assert result.exit_code == 0, result.output
    assert "Converted 2 page(s), 3 image(s), 1 warning(s), 0 error(s)" in result.output
    assert (out / "home.json").exists()
    assert (out / "settings.json").exists()
    index = json.loads((out / "images" / "index.json").read_text())
    assert len(index) == 3
    assert all((out / "images" / f"{key}.png").exists() for key in index)
    assert json.loads((out / "dependencies.json").read_text()) == []


def test_convert_page_filter(sample_file: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"

    result = runner.invoke(app, ["convert", str(sample_file), str(out), "--page", "2:0"])

    assert result.exit_code == 0, result.output
    assert "Converted 1 page(s), 1 image(s), 0 warning(s), 0 error(s)" in result.output
    assert not (out / "home.json").exists()
    assert json.loads((out / "settings.json").read_text())["page_id"] == "2:0"


def test_convert_with_font_table(sample_file: Path, tmp_path: Path) -> None:
    fonts = tmp_path / "fonts.json"
    fonts.write_text(json.dumps({"Inter": "fonts/Inter.ttf"}))
    out = tmp_path / "out"

    result = runner.invoke(app, ["convert", str(sample_file), str(out), "--fonts", str(fonts)])

    assert result.exit_code == 0, result.output
    assert "0 warning(s)" in result.output
    (dependency,) = json.loads((out / "dependencies.json").read_text())
    assert dependency["path"] == str(tmp_path / "fonts" / "Inter.ttf")
    assert dependency["kind"] == "font"


def test_convert_rejects_font_table_that_is_not_an_object(
    sample_file: Path, tmp_path: Path
) -> None:
    fonts = tmp_path / "fonts.json"
    fonts.write_text(json.dumps(["Inter"]))

    result = runner.invoke(
        app, ["convert", str(sample_file), str(tmp_path / "out"), "--fonts", str(fonts)]
    )

    assert result.exit_code == 1


def test_convert_reports_missing_font_table(sample_file: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["convert", str(sample_file), str(tmp_path / "out"), "--fonts", str(tmp_path / "no.json")],
    )

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Cannot read font table" in result.output


def test_convert_reports_malformed_font_table(sample_file: Path, tmp_path: Path) -> None:
    fonts = tmp_path / "fonts.json"
    fonts.write_text("{not json")

    result = runner.invoke(
        app, ["convert", str(sample_file), str(tmp_path / "out"), "--fonts", str(fonts)]
    )

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Cannot read font table" in result.output
    assert not (tmp_path / "out").exists()


def test_convert_clean_removes_stale_files(sample_file: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    (out / "removed-page.json").write_text("{}")

    result = runner.invoke(app, ["convert", str(sample_file), str(out), "--clean"])

    assert result.exit_code == 0, result.output
    assert not (out / "removed-page.json").exists()
    assert (out / "home.json").exists()


def test_convert_dry_run_writes_nothing(sample_file: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"

    result = runner.invoke(app, ["convert", str(sample_file), str(out), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert not out.exists()


def test_convert_fail_fast_exits_on_conversion_error(tmp_path: Path) -> None:
    unstyled = text("1:2")
    del unstyled["style"]
    document = tmp_path / "broken.json"
    document.write_text(json.dumps(document_data(page("1:0", [frame("1:1", [unstyled])]))))
    out = tmp_path / "out"

    collected = runner.invoke(app, ["convert", str(document), str(out)])
    failed = runner.invoke(app, ["convert", str(document), str(tmp_path / "x"), "--fail-fast"])

    assert collected.exit_code == 0, collected.output
    assert "1 error(s)" in collected.output
    assert failed.exit_code == 1
    assert not (tmp_path / "x").exists()


def test_convert_rejects_invalid_raster_options(sample_file: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["convert", str(sample_file), str(tmp_path / "out"), "--texture-size", "0"]
    )

    assert result.exit_code == 1


def test_missing_document_exits_with_error(tmp_path: Path) -> None:
    result = runner.invoke(app, ["pages", str(tmp_path / "missing.json")])

    assert result.exit_code == 1


def test_malformed_document_exits_with_error(tmp_path: Path) -> None:
    document = tmp_path / "list.json"
    document.write_text("[]")

    result = runner.invoke(app, ["fonts", str(document)])

    assert result.exit_code == 1


def test_pages_lists_ids_and_names(sample_file: Path) -> None:
    result = runner.invoke(app, ["pages", str(sample_file)])

    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if "\t" in line]
    assert lines == [
        "1:0\tHome\t2 top-level node(s)",
        "2:0\tSettings\t1 top-level node(s)",
    ]


def test_fonts_lists_font_names(sample_file: Path) -> None:
    result = runner.invoke(app, ["fonts", str(sample_file)])

    assert result.exit_code == 0, result.output
    assert "Inter" in result.output.splitlines()


def test_fonts_json_prints_font_table_skeleton(sample_file: Path) -> None:
    result = runner.invoke(app, ["-q", "fonts", str(sample_file), "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"Inter": ""}
