"""Combines index relevance, selection history and starring into one order."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Protocol

import structlog

from glfind.index.lexical import IndexHit
from glfind.projects.models import Project
from glfind.search.gate import relevance_multiplier
from glfind.search.models import CombinedMatch, MatchSource, SearchOptions

logger = structlog.get_logger()


class SearchBackend(Protocol):
    def search(self, query: str, max_hits: int) -> list[IndexHit]: ...


def _sort_key(match: CombinedMatch) -> tuple[float, str]:
    return (-match.total_score, match.project.path)


class Ranker:
    """Orders projects for a query.

    Empty query: ``total = affinity + starred_bonus``.
    Otherwise: ``total = raw + relevance_multiplier(raw) * (affinity + starred_bonus)``
    over at most ``max_hits`` index hits. Projects the index never returns
    for the query cannot appear, whatever their history.

    Ties are broken by project path. Index failures propagate so callers can
    tell "no matches" from "search unavailable".
    """

    def __init__(self, index: SearchBackend, *, starred_bonus: int = 50, max_hits: int = 100) -> None:
        self._index = index
        self.starred_bonus = starred_bonus
        self.max_hits = max_hits

    def rank(
        self,
        query: str,
        projects: Iterable[Project],
        affinity_scores: Mapping[str, int],
    ) -> list[CombinedMatch]:
        live = {p.path: p for p in projects}
        if not query.strip():
            matches = [self._combine(p, 0.0, 1.0, affinity_scores, "") for p in live.values()]
        else:
            matches = []
            orphans = 0
            for hit in self._index.search(query, self.max_hits):
                project = live.get(hit.project.path)
                if project is None:
                    orphans += 1
                    continue
                multiplier = relevance_multiplier(hit.score)
                matches.append(
                    self._combine(project, hit.score, multiplier, affinity_scores, hit.snippet)
                )
            if orphans:
                logger.debug("orphan_hits_dropped", query=query, count=orphans)
        matches.sort(key=_sort_key)
        return matches

    def _combine(
        self,
        project: Project,
        raw: float,
        multiplier: float,
        affinity_scores: Mapping[str, int],
        snippet: str,
    ) -> CombinedMatch:
        affinity = affinity_scores.get(project.path, 0)
        bonus = self.starred_bonus if project.starred else 0
        sources: set[MatchSource] = set()
        if raw > 0:
            sources.add(MatchSource.SEARCH)
        if affinity > 0:
            sources.add(MatchSource.HISTORY)
        if project.starred:
            sources.add(MatchSource.STARRED)
        return CombinedMatch(
            project=project,
            search_score=raw,
            affinity_score=affinity,
            starred_bonus=bonus,
            total_score=raw + multiplier * (affinity + bonus),
            sources=frozenset(sources),
            snippet=snippet,
        )


def apply_options(
    matches: list[CombinedMatch],
    options: SearchOptions,
    is_excluded: Callable[[str], bool],
) -> list[CombinedMatch]:
    """Drop hidden projects and apply the result limit, keeping rank order."""
    visible = []
    for match in matches:
        project = match.project
        if project.archived and not options.include_archived:
            continue
        if not options.include_excluded and is_excluded(project.path):
            continue
        if options.member_only and not project.member:
            continue
        visible.append(match)
    if options.limit > 0:
        return visible[: options.limit]
    return visible
