"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable:
scoring model parameters, on-disk format versions and reserved identifiers.

For configurable values, see models.py.
"""

import math

# =============================================================================
# Affinity (selection history) scoring
# =============================================================================

HALF_LIFE_DAYS = 30.0
"""Days for a selection's contribution to decay to 50%."""

MAX_AGE_DAYS = 100.0
"""Selections older than this contribute nothing and are pruned."""

DECAY_LAMBDA = math.log(2) / HALF_LIFE_DAYS
"""Exponential decay constant: ln(2) / half-life."""

GLOBAL_WEIGHT = 1.0
"""Contribution of one selection to the global score."""

QUERY_WEIGHT = 2.5
"""Extra contribution of one selection made under the same normalized query."""

SCORE_CAP = 30
"""Ceiling for any affinity score, global or query-combined."""

QUERY_HASH_BYTES = 8
"""Bytes of SHA-256 kept for a normalized query key (16 hex chars)."""

HISTORY_FORMAT_VERSION = 3
"""Current on-disk encoding of the selection history."""

# =============================================================================
# Search index
# =============================================================================

INDEX_SCHEMA_VERSION = 4
"""Bump on any breaking change to the index schema; older indexes are rebuilt."""

VERSION_DOC_ID = "__index_version__"
"""Reserved document id holding the schema version marker."""

FIELD_BOOSTS: dict[str, float] = {"name": 10.0, "path": 5.0, "description": 1.0}
"""Per-field boost for full-text queries."""

FUZZY_DISTANCE = 1
"""Edit distance tolerated per query term."""

SNIPPET_MAX_CHARS = 150
"""Longest description snippet shown for a hit."""

INDEX_BATCH_SIZE = 100
"""Documents per progress step when (re)indexing."""

# =============================================================================
# Sync
# =============================================================================

FIRST_PAGE = 1

LAST_SYNC_FILE = ".last_sync_time"
LAST_FULL_SYNC_FILE = ".last_full_sync_time"
HISTORY_FILE = "history.json"
INDEX_DIR = "index"
