"""Document ingestion pipeline."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from refdocs.config import CATEGORY_SAMPLE_CHARS
from refdocs.errors import IngestionError, OperationCancelled, StorageUnavailableError
from refdocs.index.storage import SQLiteDocIndex
from refdocs.ingestion.markdown import parse_markdown_doc
from refdocs.models import DocRecord
from refdocs.utils.files import iter_markdown_paths

LOGGER = logging.getLogger(__name__)

PROJECT_SOURCE = "project"


def find_markdown(root: Path) -> list[Path]:
    """Find all eligible markdown files under ``root``."""
    return list(iter_markdown_paths(root))


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("Ingestion cancelled")


def _build_record(
    path: Path, content: str, source: str, sample_chars: int
) -> DocRecord | None:
    if not content.strip():
        return None
    return parse_markdown_doc(path, content, source, sample_chars=sample_chars)


def ingest_directory(
    index: SQLiteDocIndex,
    root: Path,
    source: str,
    *,
    cancel: threading.Event | None = None,
    sample_chars: int = CATEGORY_SAMPLE_CHARS,
) -> int:
    """Index every markdown document under ``root``.

    Files that cannot be read or written are logged and skipped. Only a
    failure to list ``root`` itself is raised. Paths are resolved before
    record ids are derived from them. Returns the number of documents indexed.
    """
    root = Path(root).resolve()
    try:
        paths = find_markdown(root)
    except OSError as exc:
        raise IngestionError(f"Cannot read document tree {root}: {exc}") from exc

    count = 0
    for path in paths:
        _check_cancel(cancel)
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            LOGGER.warning("Skipping unreadable file %s: %s", path, exc)
            continue

        record = _build_record(path, content, source, sample_chars)
        if record is None:
            continue

        try:
            index.index_one(record)
        except StorageUnavailableError as exc:
            LOGGER.warning("Failed to index %s: %s", path, exc)
            continue

        count += 1
        LOGGER.debug("Indexed %s (title=%r, category=%s)", path, record.title, record.category)

    return count


def ingest_file(
    index: SQLiteDocIndex,
    path: Path,
    source: str,
    *,
    cancel: threading.Event | None = None,
    sample_chars: int = CATEGORY_SAMPLE_CHARS,
) -> bool:
    """Index one explicit file. Returns ``False`` when the file was empty."""
    _check_cancel(cancel)
    path = Path(path).resolve()
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise IngestionError(f"Cannot read {path}: {exc}") from exc

    record = _build_record(path, content, source, sample_chars)
    if record is None:
        LOGGER.debug("Nothing to index in %s", path)
        return False
    index.index_one(record)
    return True


@dataclass(slots=True)
class Indexer:
    """Ingestion bound to one open index handle."""

    index: SQLiteDocIndex
    sample_chars: int = CATEGORY_SAMPLE_CHARS

    def ingest(
        self, path: Path, source: str, *, cancel: threading.Event | None = None
    ) -> int:
        """Ingest a directory tree or a single file; returns documents indexed."""
        path = Path(path)
        if path.is_dir():
            return ingest_directory(
                self.index, path, source, cancel=cancel, sample_chars=self.sample_chars
            )
        indexed = ingest_file(
            self.index, path, source, cancel=cancel, sample_chars=self.sample_chars
        )
        return int(indexed)


def discover_sources(docs_root: Path) -> dict[str, Path]:
    """Map each immediate sub-directory of ``docs_root`` to a source tag of its own name.

    Directories are returned relative to ``docs_root``.
    """
    return {
        child.name: Path(child.name)
        for child in sorted(Path(docs_root).iterdir())
        if child.is_dir() and not child.name.startswith(".")
    }


def build_index(
    index_path: Path,
    docs_root: Path | None,
    *,
    sources: Mapping[str, Path] | None = None,
    project_files: Sequence[Path] = (),
    cancel: threading.Event | None = None,
    sample_chars: int = CATEGORY_SAMPLE_CHARS,
) -> int:
    """Rebuild the index from scratch.

    The existing store is removed first, so nothing else may hold it open.
    ``sources`` maps source tags to directories; relative directories are
    resolved against ``docs_root``. By default every sub-directory of
    ``docs_root`` becomes a source named after it.
    """
    LOGGER.info("Building documentation index at %s", index_path)
    SQLiteDocIndex.remove(index_path)

    with SQLiteDocIndex.create(index_path) as index:
        total = 0
        if docs_root is None:
            LOGGER.warning("No docs directory found, index will be empty")
        else:
            docs_root = Path(docs_root).resolve()
            if not docs_root.is_dir():
                raise IngestionError(f"Docs root is not a directory: {docs_root}")
            if sources is None:
                sources = discover_sources(docs_root)
            for source, directory in sources.items():
                directory = Path(directory)
                if not directory.is_absolute():
                    directory = docs_root / directory
                if not directory.is_dir():
                    LOGGER.info("Skipping source %s: %s is not a directory", source, directory)
                    continue
                count = ingest_directory(
                    index, directory, source, cancel=cancel, sample_chars=sample_chars
                )
                LOGGER.info("Indexed %d %s docs", count, source)
                total += count

        for project_file in project_files:
            if ingest_file(
                index, project_file, PROJECT_SOURCE, cancel=cancel, sample_chars=sample_chars
            ):
                total += 1

        LOGGER.info("Documentation index built: %d docs", total)
    return total
