"""Write finished import passes to an output directory.

Each page tree goes to ``<page-name>.json``, each generated image to
``images/<key>.png`` (described in ``images/index.json``) and the list of
external assets the pages rely on to ``dependencies.json``.
"""

import io
import itertools
import json
import os
import re
import shlex
from dataclasses import asdict
from pathlib import Path
from typing import Any

from loguru import logger

from figma_ui.core.raster.rasterizer import GeneratedImage
from figma_ui.models.result import ImportResult
from figma_ui.protocols import WriterProtocol

OUTPUT_SUFFIXES = (".json", ".png")


def _raise(x: Exception) -> None:
    raise x


class FileWriter:
    """Writes a conversion into an output directory without touching unchanged files.

    Files whose bytes are identical to what is on disk are left alone, so
    a re-import only changes the mtime of pages and images that changed.
    Files left over from earlier runs can be removed on ``finalize``.
    """

    def __init__(self, datadir: str | Path, dry_run: bool = False) -> None:
        self.datadir = str(Path(datadir).resolve())
        self.dry_run = dry_run
        if not dry_run:
            Path(self.datadir).mkdir(parents=True, exist_ok=True)
        logger.debug("Writing to {!r} (dry run: {})", self.datadir, dry_run)

        self._written: set[str] = set()
        self._reserved: set[str] = set()
        self._updates: list[tuple[str, str]] = []
        self._num_same = 0
        self._num_changed = 0
        self._finalized = False

    def is_possible_output(self, fname: str) -> bool:
        """True for names this writer could have produced.

        ``finalize`` will not delete anything while the directory holds a
        file this rejects.
        """
        return fname.endswith(OUTPUT_SUFFIXES)

    def _resolve(self, fname_rel: str) -> str:
        if Path(fname_rel).is_absolute():
            msg = f"Output path must be relative: {fname_rel!r}"
            raise ValueError(msg)
        fname = os.path.normpath(os.path.join(self.datadir, fname_rel))
        if not fname.startswith(self.datadir + os.sep):
            msg = f"Path escapes datadir: {fname!r}"
            raise ValueError(msg)
        return fname

    def make_unique_name(self, base: str, *, suffix: str = "") -> str:
        """Reserve and return ``base``, or ``base-N`` if that is already taken."""
        for n in itertools.count():
            name = base if n == 0 else f"{base}-{n}"
            fname = self._resolve(name + suffix)
            if fname not in self._written and fname not in self._reserved:
                self._reserved.add(fname)
                return name
        raise AssertionError("unreachable")

    def make_data_file(
        self,
        fname_rel: str,
        *,
        contents: str | bytes | None = None,
        data: Any = None,
    ) -> None:
        """Write one output file, relative to the output directory.

        Args:
            fname_rel: Path relative to the output directory.
            contents: Text or PNG bytes. If None, ``data`` is written as JSON.
            data: JSON-serializable value. Mutually exclusive with contents.
        """
        if contents is not None and data is not None:
            msg = "Cannot specify both contents and data"
            raise ValueError(msg)
        if contents is None:
            contents = json.dumps(data, sort_keys=True, indent=4) + "\n"
        payload = contents if isinstance(contents, bytes) else contents.encode("utf-8")

        fname = self._resolve(fname_rel)
        if not self.is_possible_output(fname):
            msg = f"Refusing to write {fname!r}: is_possible_output() rejects it"
            raise ValueError(msg)
        if fname in self._written:
            msg = f"{fname!r} was already written by this writer"
            raise ValueError(msg)
        self._written.add(fname)

        path = Path(fname)
        if not path.exists():
            action = "create"
        elif path.read_bytes() == payload:
            self._num_same += 1
            return
        else:
            action = "update"
            self._num_changed += 1
        self._updates.append((action, fname))

        if self.dry_run:
            logger.info("dry-run: would {} {!r}", action, fname)
            return
        logger.debug("{} {!r}", action.capitalize(), fname)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)

    def _leftovers(self) -> tuple[list[str], list[str]]:
        """Files not written this session, and directories that would be left empty."""
        if not Path(self.datadir).is_dir():
            return [], []

        stale: list[str] = []
        dirs: set[str] = set()
        for dirpath, dirnames, filenames in os.walk(self.datadir, onerror=_raise):
            dirs.update(os.path.join(dirpath, d) for d in dirnames)
            stale.extend(
                fname
                for fname in (os.path.join(dirpath, f) for f in filenames)
                if fname not in self._written
            )

        for fname in self._written:
            parent = os.path.dirname(fname)
            while len(parent) > len(self.datadir):
                dirs.discard(parent)
                parent = os.path.dirname(parent)
        # Deepest first so parents are empty by the time they are removed.
        empty = sorted(dirs, key=lambda d: (-d.count(os.sep), d))
        return sorted(stale), empty

    def finalize(self, *, delete_others: bool = False) -> list[tuple[str, str]]:
        """Report what changed and return the sorted (action, filename) list.

        With ``delete_others``, files from earlier runs that were not written
        again are removed, followed by the directories that held them.
        """
        if self._finalized:
            msg = "finalize() called twice"
            raise RuntimeError(msg)
        self._finalized = True

        stale, empty_dirs = self._leftovers()
        self._updates.extend(("delete", fname) for fname in stale)
        suspicious = [fname for fname in stale if not self.is_possible_output(fname)]

        created = len(self._written) - self._num_same - self._num_changed
        logger.log(
            "DEBUG" if self._num_same == len(self._written) else "INFO",
            "Outputs: {} new, {} changed, {} unchanged, {} stale",
            created,
            self._num_changed,
            self._num_same,
            len(stale),
        )

        if suspicious:
            logger.warning(
                "Unexpected files in output dir ({}), cleanup disabled: {}",
                len(suspicious),
                " ".join(shlex.quote(fname) for fname in suspicious[:10]),
            )

        if delete_others and (stale or empty_dirs):
            if suspicious:
                raise SystemExit(f"FATAL: Cannot cleanup: {len(suspicious)} suspicious files")
            self._remove(stale, empty_dirs)

        return sorted(self._updates)

    def _remove(self, files: list[str], dirs: list[str]) -> None:
        logger.info("Removing {} stale file(s)", len(files))
        for fname in files:
            if self.dry_run:
                logger.info("dry-run: would remove {!r}", fname)
                continue
            logger.debug("Removing {!r}", fname)
            Path(fname).unlink()
        for dirname in dirs:
            if not self.dry_run:
                Path(dirname).rmdir()


def page_file_stem(name: str, fallback: str) -> str:
    """Lowercase, dash-separated file stem for a page name."""
    stem = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return stem or re.sub(r"[^A-Za-z0-9]+", "-", fallback).strip("-") or "page"


def _image_entry(generated: GeneratedImage) -> dict[str, Any]:
    return {
        "name": generated.name,
        "size": list(generated.size),
        "ratio": generated.ratio,
        "pixels_per_unit": generated.pixels_per_unit,
        "wrap_mode": generated.wrap_mode,
        "filter_mode": generated.filter_mode,
        "insets": asdict(generated.insets) if generated.insets is not None else None,
    }


def write_result(writer: WriterProtocol, result: ImportResult) -> None:
    """Write every page tree, generated image and dependency of a finished pass."""
    result.unwrap()

    for page in result.pages:
        stem = writer.make_unique_name(page_file_stem(page.name, page.page_id), suffix=".json")
        writer.make_data_file(f"{stem}.json", data=page.to_dict())

    index: dict[str, Any] = {}
    for key, generated in result.images.items():
        png = io.BytesIO()
        generated.image.save(png, format="PNG")
        writer.make_data_file(f"images/{key}.png", contents=png.getvalue())
        index[key] = _image_entry(generated)
    if index:
        writer.make_data_file("images/index.json", data=index)

    dependencies = [
        {"key": dep.key, "path": str(dep.path), "kind": dep.kind}
        for dep in result.dependencies.values()
    ]
    writer.make_data_file("dependencies.json", data=dependencies)
