"""Selection history and affinity scoring."""

from glfind.history.store import AffinityStore, HistoryEntry, normalize_query

__all__ = ["AffinityStore", "HistoryEntry", "normalize_query"]
