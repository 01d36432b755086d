"""Tests for crash-safe file writes."""

from pathlib import Path
from unittest.mock import patch

import pytest

from glfind.core.errors import ErrorCode, PersistenceError
from glfind.core.fileio import atomic_write_bytes, atomic_write_text


class _Killed(BaseException):
    """Stands in for the process dying between write and rename."""


class TestAtomicWrite:
    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "state.json"
        atomic_write_text(target, "{}")
        assert target.read_text() == "{}"

    def test_replaces_existing_content(self, tmp_path: Path) -> None:
        target = tmp_path / "state.json"
        target.write_text("old")
        atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"new"

    def test_given_termination_before_rename_then_destination_unchanged(self, tmp_path: Path) -> None:
        # Given
        target = tmp_path / "history.json"
        target.write_bytes(b'{"version": 3, "selections": {}}')
        before = target.read_bytes()

        # When
        with patch("glfind.core.fileio.os.replace", side_effect=_Killed), pytest.raises(_Killed):
            atomic_write_bytes(target, b"half-written garbage")

        # Then
        assert target.read_bytes() == before

    def test_given_rename_failure_then_temp_removed_and_error_raised(self, tmp_path: Path) -> None:
        # Given
        target = tmp_path / "history.json"
        target.write_bytes(b"committed")

        # When
        with (
            patch("glfind.core.fileio.os.replace", side_effect=OSError("disk full")),
            pytest.raises(PersistenceError) as exc_info,
        ):
            atomic_write_bytes(target, b"new")

        # Then
        assert exc_info.value.code == ErrorCode.PERSIST_WRITE_FAILED
        assert target.read_bytes() == b"committed"
        assert [p.name for p in tmp_path.iterdir()] == ["history.json"]
