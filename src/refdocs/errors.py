"""Exception hierarchy shared by ingestion, storage and lookups."""

from __future__ import annotations

from pathlib import Path


class RefDocsError(Exception):
    """Base class for refdocs failures."""


class InvalidArgumentError(RefDocsError, ValueError):
    """A required input was missing or empty."""


class StorageUnavailableError(RefDocsError):
    """The index store could not be opened, read or written."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message} ({self.path})"
        super().__init__(message)


class IndexNotFoundError(StorageUnavailableError):
    """No index exists at the requested location."""


class IngestionError(RefDocsError):
    """A document tree or an explicitly requested file could not be read."""


class OperationCancelled(RefDocsError):
    """The caller cancelled the operation before it finished."""
