"""Tests for the history decode chain."""

import json
from datetime import UTC, datetime

import pytest

from glfind.history.codec import HistoryDecodeError, HistoryState, decode, encode

T1 = "2026-02-01T10:00:00+00:00"


def _raw(data: object) -> bytes:
    return json.dumps(data).encode()


class TestDecode:
    def test_current_format(self) -> None:
        # Given
        raw = _raw(
            {
                "version": 3,
                "selections": {"g/a": [T1, T1]},
                "query_selections": {"abcd": {"g/a": [T1]}},
            }
        )

        # When
        fmt, state = decode(raw)

        # Then
        assert fmt == "v3"
        assert len(state.selections["g/a"]) == 2
        assert state.query_selections["abcd"]["g/a"][0] == datetime(2026, 2, 1, 10, tzinfo=UTC)
        assert state.migrated is False

    def test_legacy_nested_pairs_expand_to_timestamps(self) -> None:
        # Given
        raw = _raw(
            {
                "selections": {"g/a": {"count": 3, "last_used": T1}},
                "query_selections": {"abcd": {"g/a": {"count": 1, "last_used": T1}}},
            }
        )

        # When
        fmt, state = decode(raw)

        # Then
        assert fmt == "v2"
        assert state.migrated is True
        assert len(state.selections["g/a"]) == 3
        assert len(state.query_selections["abcd"]["g/a"]) == 1

    def test_legacy_flat_map(self) -> None:
        fmt, state = decode(_raw({"g/a": {"count": 2, "last_used": T1}}))
        assert fmt == "v1"
        assert len(state.selections["g/a"]) == 2

    def test_legacy_counts_capped(self) -> None:
        _, state = decode(_raw({"g/a": {"count": 500, "last_used": T1}}))
        assert len(state.selections["g/a"]) == 30

    def test_naive_timestamps_read_as_utc(self) -> None:
        _, state = decode(_raw({"version": 3, "selections": {"g/a": ["2026-02-01T10:00:00"]}}))
        assert state.selections["g/a"][0].tzinfo is not None

    @pytest.mark.parametrize(
        "raw",
        [b"\x00\xff", b"not json", b"[1, 2]", _raw({"g/a": {"count": "x", "last_used": T1}})],
    )
    def test_unrecoverable_payload_raises(self, raw: bytes) -> None:
        with pytest.raises(HistoryDecodeError):
            decode(raw)


class TestEncode:
    def test_encode_writes_current_version(self) -> None:
        ts = datetime(2026, 2, 1, 10, tzinfo=UTC)
        state = HistoryState(selections={"g/a": [ts]}, query_selections={"abcd": {"g/a": [ts]}})

        data = json.loads(encode(state))

        assert data["version"] == 3
        assert data["selections"] == {"g/a": [T1]}
        assert data["query_selections"] == {"abcd": {"g/a": [T1]}}
