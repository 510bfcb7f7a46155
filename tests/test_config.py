"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from refdocs.config import (
    CATEGORY_SAMPLE_CHARS,
    CHARS_PER_TOKEN,
    DEFAULT_MAX_TOKENS,
    AppConfig,
    find_docs_root,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("REFDOCS_INDEX", "REFDOCS_DOCS_ROOT", "REFDOCS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.index_path == Path("docs/index.db")
        assert config.docs_root == Path("docs")
        assert config.log_level == "INFO"
        assert config.default_max_tokens == DEFAULT_MAX_TOKENS == 3000
        assert config.chars_per_token == CHARS_PER_TOKEN == 4
        assert config.category_sample_chars == CATEGORY_SAMPLE_CHARS == 500

    def test_values_are_normalised(self) -> None:
        config = AppConfig(index_path="custom/index.db", docs_root="refs", log_level="debug")  # type: ignore[arg-type]

        assert config.index_path == Path("custom/index.db")
        assert config.docs_root == Path("refs")
        assert config.log_level == "DEBUG"

    def test_resolve_index_path_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(index_path=Path("/absolute/index.db"))

        assert config.resolve_index_path(Path("/base")) == Path("/absolute/index.db")

    def test_resolve_index_path_relative_no_base(self) -> None:
        config = AppConfig(index_path=Path("relative/index.db"))

        assert config.resolve_index_path() == Path("relative/index.db")

    def test_resolve_index_path_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(index_path=Path("relative/index.db"))

        resolved = config.resolve_index_path(base_dir=Path("/base/directory"))

        assert resolved == Path("/base/directory/relative/index.db")


class TestFromEnv:
    """Test AppConfig.from_env."""

    def test_defaults_without_environment(self) -> None:
        config = AppConfig.from_env()

        assert config == AppConfig()

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REFDOCS_INDEX", "/srv/refdocs/index.db")
        monkeypatch.setenv("REFDOCS_DOCS_ROOT", "/srv/refdocs/docs")
        monkeypatch.setenv("REFDOCS_LOG_LEVEL", "warning")

        config = AppConfig.from_env()

        assert config.index_path == Path("/srv/refdocs/index.db")
        assert config.docs_root == Path("/srv/refdocs/docs")
        assert config.log_level == "WARNING"



class TestFindDocsRoot:
    """Test docs directory discovery."""

    def test_configured_root_wins(self, tmp_path: Path) -> None:
        root = tmp_path / "docs"
        root.mkdir()

        assert find_docs_root(AppConfig(docs_root=root)) == root.resolve()

    def test_relative_root_is_made_absolute(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "reference").mkdir()
        monkeypatch.chdir(tmp_path)

        found = find_docs_root(AppConfig(docs_root=Path("reference")))

        assert found is not None
        assert found.is_absolute()
        assert found == (tmp_path / "reference").resolve()

    def test_falls_back_to_docs_in_base_dir(self, tmp_path: Path) -> None:
        (tmp_path / "docs").mkdir()

        found = find_docs_root(AppConfig(docs_root=tmp_path / "missing"), base_dir=tmp_path)

        assert found == (tmp_path / "docs").resolve()

    def test_none_when_nothing_found(self, tmp_path: Path) -> None:
        config = AppConfig(docs_root=tmp_path / "missing")

        assert find_docs_root(config, base_dir=tmp_path) is None
