"""On-disk encodings of the selection history.

Three generations exist:

- v3 (current)::

    {"version": 3,
     "selections": {"group/proj": ["2026-01-02T10:00:00+00:00", ...]},
     "query_selections": {"<query-hash>": {"group/proj": [...]}}}

- v2: same nesting, but each item holds ``{"count": n, "last_used": iso}``.
- v1: a flat ``{"group/proj": {"count": n, "last_used": iso}}`` map.

Decoding tries each generation in order; legacy count/last-used pairs are
expanded into ``min(count, SCORE_CAP)`` copies of ``last_used``, which keeps
the item's standing without inventing history the old format never had.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from glfind.config.constants import HISTORY_FORMAT_VERSION, SCORE_CAP

Timestamps = list[datetime]
ItemTimestamps = dict[str, Timestamps]


class HistoryDecodeError(ValueError):
    """Raised by a single decoder when the payload is not in its format."""


@dataclass
class HistoryState:
    """Decoded history: global and per-query-hash selection timestamps."""

    selections: ItemTimestamps = field(default_factory=dict)
    query_selections: dict[str, ItemTimestamps] = field(default_factory=dict)
    migrated: bool = False


def parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise HistoryDecodeError(f"timestamp must be a string, got {type(value).__name__}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise HistoryDecodeError(f"bad timestamp {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _load_json(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HistoryDecodeError(f"not JSON: {e}") from e


def _require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise HistoryDecodeError(f"{what} must be an object")
    return value


def _timestamp_lists(value: Any, what: str) -> ItemTimestamps:
    out: ItemTimestamps = {}
    for item, stamps in _require_mapping(value, what).items():
        if not isinstance(stamps, list):
            raise HistoryDecodeError(f"{what}[{item!r}] must be a list")
        out[item] = sorted(parse_timestamp(s) for s in stamps)
    return out


def _expand_pair(value: Any, what: str) -> Timestamps:
    pair = _require_mapping(value, what)
    if "count" not in pair or "last_used" not in pair:
        raise HistoryDecodeError(f"{what} must hold count and last_used")
    count = pair["count"]
    if not isinstance(count, int) or isinstance(count, bool):
        raise HistoryDecodeError(f"{what}.count must be an integer")
    last_used = parse_timestamp(pair["last_used"])
    return [last_used] * min(max(count, 0), SCORE_CAP)


def _pair_map(value: Any, what: str) -> ItemTimestamps:
    out: ItemTimestamps = {}
    for item, pair in _require_mapping(value, what).items():
        stamps = _expand_pair(pair, f"{what}[{item!r}]")
        if stamps:
            out[item] = stamps
    return out


def decode_v3(raw: bytes) -> HistoryState:
    data = _require_mapping(_load_json(raw), "history")
    if data.get("version") != HISTORY_FORMAT_VERSION:
        raise HistoryDecodeError(f"version {data.get('version')!r} is not {HISTORY_FORMAT_VERSION}")
    selections = _timestamp_lists(data.get("selections", {}), "selections")
    query_selections = {
        qhash: _timestamp_lists(bucket, f"query_selections[{qhash!r}]")
        for qhash, bucket in _require_mapping(
            data.get("query_selections", {}), "query_selections"
        ).items()
    }
    return HistoryState(selections=selections, query_selections=query_selections)


def decode_v2(raw: bytes) -> HistoryState:
    data = _require_mapping(_load_json(raw), "history")
    if "selections" not in data or "version" in data:
        raise HistoryDecodeError("not a v2 history document")
    selections = _pair_map(data["selections"], "selections")
    query_selections = {
        qhash: _pair_map(bucket, f"query_selections[{qhash!r}]")
        for qhash, bucket in _require_mapping(
            data.get("query_selections") or {}, "query_selections"
        ).items()
    }
    return HistoryState(
        selections=selections,
        query_selections={k: v for k, v in query_selections.items() if v},
        migrated=True,
    )


def decode_v1(raw: bytes) -> HistoryState:
    data = _require_mapping(_load_json(raw), "history")
    return HistoryState(selections=_pair_map(data, "selections"), migrated=True)


DECODERS: tuple[tuple[str, Callable[[bytes], HistoryState]], ...] = (
    ("v3", decode_v3),
    ("v2", decode_v2),
    ("v1", decode_v1),
)


def decode(raw: bytes) -> tuple[str, HistoryState]:
    """Decode with the first format that accepts ``raw``.

    Returns:
        ``(format_name, state)``.

    Raises:
        HistoryDecodeError: If no known format accepts the payload. The
            message lists why each attempt was rejected.
    """
    reasons: list[str] = []
    for name, decoder in DECODERS:
        try:
            return name, decoder(raw)
        except HistoryDecodeError as e:
            reasons.append(f"{name}: {e}")
    raise HistoryDecodeError("; ".join(reasons))


def encode(state: HistoryState) -> bytes:
    """Encode in the current format."""

    def _lists(items: ItemTimestamps) -> dict[str, list[str]]:
        return {item: [ts.isoformat() for ts in stamps] for item, stamps in sorted(items.items())}

    doc = {
        "version": HISTORY_FORMAT_VERSION,
        "selections": _lists(state.selections),
        "query_selections": {
            qhash: _lists(bucket) for qhash, bucket in sorted(state.query_selections.items())
        },
    }
    return json.dumps(doc, indent=1).encode("utf-8")
