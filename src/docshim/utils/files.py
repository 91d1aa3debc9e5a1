"""Utility helpers for working with files."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

MARKDOWN_SUFFIXES = {".md", ".markdown"}


def iter_markdown_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield markdown paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_markdown_paths(
                sorted(child for child in item.rglob("*") if child.is_file())
            )
        elif item.is_file() and item.suffix.lower() in MARKDOWN_SUFFIXES:
            yield item


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write text to a sibling temp file, then move it over ``path``."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
