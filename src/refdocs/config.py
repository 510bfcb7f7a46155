"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_INDEX_PATH = Path("docs/index.db")
DEFAULT_DOCS_ROOT = Path("docs")
DEFAULT_MAX_TOKENS = 3000
CHARS_PER_TOKEN = 4
CATEGORY_SAMPLE_CHARS = 500


@dataclass(slots=True)
class AppConfig:
    index_path: Path = DEFAULT_INDEX_PATH
    docs_root: Path = DEFAULT_DOCS_ROOT
    log_level: str = "INFO"
    default_max_tokens: int = DEFAULT_MAX_TOKENS
    chars_per_token: int = CHARS_PER_TOKEN
    category_sample_chars: int = CATEGORY_SAMPLE_CHARS

    def __post_init__(self) -> None:
        self.index_path = Path(self.index_path)
        self.docs_root = Path(self.docs_root)
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from REFDOCS_* environment variables."""
        return cls(
            index_path=Path(os.environ.get("REFDOCS_INDEX", str(DEFAULT_INDEX_PATH))),
            docs_root=Path(os.environ.get("REFDOCS_DOCS_ROOT", str(DEFAULT_DOCS_ROOT))),
            log_level=os.environ.get("REFDOCS_LOG_LEVEL", "INFO"),
        )

    def resolve_index_path(self, base_dir: Path | None = None) -> Path:
        if self.index_path.is_absolute() or base_dir is None:
            return self.index_path
        return base_dir / self.index_path


def find_docs_root(config: AppConfig, base_dir: Path | None = None) -> Path | None:
    """Locate the documentation tree as an absolute path.

    The configured root wins when it exists; otherwise a ``docs`` directory
    under ``base_dir`` (the working directory by default) is tried.
    """
    base = base_dir if base_dir is not None else Path.cwd()
    for candidate in (config.docs_root, DEFAULT_DOCS_ROOT):
        if not candidate.is_absolute():
            candidate = base / candidate
        if candidate.is_dir():
            return candidate.resolve()
    return None
