"""Tests for config models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from glfind.config.models import CacheConfig, GitLabConfig, GlfConfig, LogOutputConfig


class TestExcludedPaths:
    @pytest.mark.parametrize(
        ("pattern", "path", "expected"),
        [
            ("sandbox/*", "sandbox/tool", True),
            ("sandbox/*", "sandbox/deep/tool", True),
            ("sandbox/*", "sandboxes/tool", False),
            ("*/legacy-*", "team/legacy-api", True),
            ("team/exact", "team/exact", True),
            ("team/exact", "team/exact-not", False),
        ],
    )
    def test_pattern_matching(self, pattern: str, path: str, expected: bool) -> None:
        config = GlfConfig(excluded_paths=[pattern])
        assert config.is_excluded(path) is expected

    def test_no_patterns_excludes_nothing(self) -> None:
        assert GlfConfig().is_excluded("any/thing") is False


class TestGitLabConfig:
    def test_non_positive_timeout_falls_back(self) -> None:
        assert GitLabConfig(timeout_sec=0).timeout_sec == 30.0

    def test_zero_concurrency_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GitLabConfig(max_concurrency=0)


class TestCacheConfig:
    def test_derived_paths(self, tmp_path: Path) -> None:
        cache = CacheConfig(dir=tmp_path)
        assert cache.index_path == tmp_path / "index"
        assert cache.history_path == tmp_path / "history.json"
        assert cache.last_sync_path == tmp_path / ".last_sync_time"
        assert cache.last_full_sync_path == tmp_path / ".last_full_sync_time"

    def test_home_expanded(self) -> None:
        assert "~" not in str(CacheConfig(dir=Path("~/glf")).dir)


class TestLogOutputConfig:
    def test_stderr_accepted(self) -> None:
        assert LogOutputConfig().destination == "stderr"

    @pytest.mark.parametrize("destination", ["stdout", "relative/glf.log"])
    def test_stdout_and_relative_paths_rejected(self, destination: str) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination=destination)
