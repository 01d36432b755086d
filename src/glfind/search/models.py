"""Ranked result types and per-request search options."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from glfind.projects.models import Project


class MatchSource(enum.Enum):
    """Why a project appears in the results."""

    SEARCH = "search"
    HISTORY = "history"
    STARRED = "starred"


@dataclass(frozen=True, slots=True)
class CombinedMatch:
    """One ranked result. Recomputed per query, never persisted."""

    project: Project
    search_score: float
    affinity_score: int
    starred_bonus: int
    total_score: float
    sources: frozenset[MatchSource] = field(default_factory=frozenset)
    snippet: str = ""

    def to_dict(
        self, *, include_score: bool = False, base_url: str = "", excluded: bool = False
    ) -> dict[str, Any]:
        """JSON shape used by ``glf search --json``."""
        p = self.project
        out: dict[str, Any] = {
            "path": p.path,
            "name": p.name,
            "description": p.description,
            "url": p.web_url(base_url) if base_url else p.path,
            "starred": p.starred,
            "archived": p.archived,
            "excluded": excluded,
            "member": p.member,
        }
        if self.snippet:
            out["snippet"] = self.snippet
        if include_score:
            out["score"] = round(self.total_score, 4)
            out["sources"] = sorted(s.value for s in self.sources)
        return out


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Display and visibility options for one search request.

    ``limit <= 0`` means unlimited.
    """

    limit: int = 20
    include_archived: bool = False
    include_excluded: bool = False
    member_only: bool = False
    show_scores: bool = False
