"""Utility helpers for working with files."""

from __future__ import annotations

import fnmatch
import hashlib
import logging
import os
import re
from pathlib import Path
from typing import Iterable, Iterator

LOGGER = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({".txt", ".md", ".csv", ".json", ".pdf"})

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B?)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {
    "": 1,
    "B": 1,
    "K": 1 << 10,
    "KB": 1 << 10,
    "M": 1 << 20,
    "MB": 1 << 20,
    "G": 1 << 30,
    "GB": 1 << 30,
}


def parse_size(value: str) -> int:
    """Parse sizes like ``512``, ``10KB`` or ``1.5MB`` into bytes."""
    match = _SIZE_RE.match(value)
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "").upper()])


def document_id(path: Path) -> str:
    """Deterministic identifier derived from the absolute path."""
    digest = hashlib.sha1(str(Path(path).absolute()).encode("utf-8")).hexdigest()
    return f"doc-{digest[:16]}"


def _is_excluded(relative: str, name: str, pattern: str | None) -> bool:
    if not pattern:
        return False
    return fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(name, pattern)


def iter_document_paths(
    root: Path,
    *,
    exclude_pattern: str | None = None,
    max_file_size: int | None = None,
    extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
) -> Iterator[Path]:
    """Yield indexable files under ``root``, descending into directories.

    Entries are visited in sorted order. Unreadable entries and symlink
    cycles are logged and skipped rather than aborting the walk.
    """
    allowed = {ext.lower() for ext in extensions}
    root = Path(root)
    visited: set[tuple[int, int]] = set()

    def _on_error(exc: OSError) -> None:
        LOGGER.warning("Skipping unreadable entry %s: %s", exc.filename, exc.strerror or exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=True):
        try:
            stat = os.stat(dirpath)
        except OSError as exc:
            LOGGER.warning("Cannot stat directory %s: %s", dirpath, exc)
            dirnames[:] = []
            continue
        key = (stat.st_dev, stat.st_ino)
        if key in visited:
            LOGGER.warning("Symlink cycle detected at %s, skipping", dirpath)
            dirnames[:] = []
            continue
        visited.add(key)

        current = Path(dirpath)
        rel_dir = current.relative_to(root)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not _is_excluded((rel_dir / name).as_posix(), name, exclude_pattern)
        )

        for name in sorted(filenames):
            path = current / name
            if path.suffix.lower() not in allowed:
                continue
            if _is_excluded((rel_dir / name).as_posix(), name, exclude_pattern):
                LOGGER.debug("Excluded by pattern: %s", path)
                continue
            try:
                if not path.is_file():
                    continue
                size = path.stat().st_size
            except OSError as exc:
                LOGGER.warning("Skipping %s: %s", path, exc)
                continue
            if max_file_size is not None and size > max_file_size:
                LOGGER.debug("Skipping %s (%d bytes exceeds limit of %d)", path, size, max_file_size)
                continue
            yield path
