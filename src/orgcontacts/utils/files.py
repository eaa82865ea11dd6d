"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Sequence


def iter_outline_paths(inputs: Iterable[Path], extensions: Sequence[str] = (".org",)) -> Iterator[Path]:
    """Yield outline document paths from input paths, descending into directories."""
    suffixes = {ext.lower() for ext in extensions}
    for item in inputs:
        if item.is_dir():
            yield from iter_outline_paths(
                sorted(child for child in item.rglob("*") if child.is_file()), extensions
            )
        elif item.is_file() and item.suffix.lower() in suffixes:
            yield item


def file_mtime(path: Path) -> float | None:
    """Return the modification time of a file, or None when it is gone."""
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return None
