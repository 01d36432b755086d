"""Ranking of index hits with history and starring."""

from glfind.search.gate import relevance_multiplier
from glfind.search.models import CombinedMatch, MatchSource, SearchOptions
from glfind.search.ranker import Ranker, apply_options

__all__ = [
    "CombinedMatch",
    "MatchSource",
    "Ranker",
    "SearchOptions",
    "apply_options",
    "relevance_multiplier",
]
