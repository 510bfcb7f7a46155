"""Utility helpers for working with files."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterator

MARKDOWN_SUFFIXES = (".md", ".markdown")

# Project meta-documents, never reference content.
SKIP_FILES = frozenset({"README.md", "CHANGELOG.md", "CONTRIBUTING.md", "LICENSE.md"})


def is_markdown(path: Path | str) -> bool:
    return Path(path).suffix.lower() in MARKDOWN_SUFFIXES


def iter_markdown_paths(root: Path) -> Iterator[Path]:
    """Yield eligible markdown files under ``root``, depth first, in sorted order.

    Errors while listing ``root`` itself propagate; unreadable sub-directories
    are skipped by ``os.walk``.
    """
    # os.walk swallows a missing root, so list it eagerly to surface the error.
    os.listdir(root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if name in SKIP_FILES:
                continue
            path = Path(dirpath) / name
            if is_markdown(path) and path.is_file():
                yield path


def remove_path(path: Path) -> None:
    """Remove a file or directory tree if present."""
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        path.unlink()
