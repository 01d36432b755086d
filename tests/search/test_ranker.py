"""Tests for ranking: empty-query ordering, relevance gating, orphans."""

from __future__ import annotations

import pytest

from glfind.core.errors import SearchIndexError
from glfind.index.lexical import IndexHit
from glfind.projects.models import Project
from glfind.search.models import MatchSource, SearchOptions
from glfind.search.ranker import Ranker, apply_options


class FakeIndex:
    def __init__(self, hits: list[IndexHit] | None = None, error: Exception | None = None) -> None:
        self.hits = hits or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def search(self, query: str, max_hits: int) -> list[IndexHit]:
        self.calls.append((query, max_hits))
        if self.error is not None:
            raise self.error
        return self.hits[:max_hits]


def _p(path: str, *, starred: bool = False, archived: bool = False, member: bool = False) -> Project:
    return Project(path=path, name=path.rsplit("/", 1)[-1], starred=starred, archived=archived, member=member)


class TestEmptyQuery:
    def test_orders_by_history_plus_star_with_path_tie_break(self) -> None:
        # Given
        a = _p("g/a", starred=True)
        b = _p("g/b")
        c = _p("g/c")
        index = FakeIndex()

        # When
        ranked = Ranker(index).rank("", [c, b, a], {"g/b": 50, "g/c": 10})

        # Then
        assert [m.project.path for m in ranked] == ["g/a", "g/b", "g/c"]
        assert [m.total_score for m in ranked] == [50, 50, 10]
        assert index.calls == []

    def test_includes_projects_without_signal(self) -> None:
        ranked = Ranker(FakeIndex()).rank("  ", [_p("g/z"), _p("g/y")], {})
        assert [m.project.path for m in ranked] == ["g/y", "g/z"]
        assert all(m.search_score == 0 for m in ranked)


class TestQuery:
    def test_irrelevant_favourite_ranks_below_relevant_match(self) -> None:
        # Given
        x = _p("g/x", starred=True)
        y = _p("g/y")
        index = FakeIndex([IndexHit(x, 0.05), IndexHit(y, 3.3)])

        # When
        ranked = Ranker(index, starred_bonus=50).rank("query", [x, y], {"g/x": 57})

        # Then
        assert [m.project.path for m in ranked] == ["g/y", "g/x"]
        assert ranked[1].total_score == pytest.approx(0.05)
        assert ranked[0].total_score == pytest.approx(3.3)

    def test_strong_match_gets_full_bonus(self) -> None:
        a = _p("g/a", starred=True)
        ranked = Ranker(FakeIndex([IndexHit(a, 2.0)])).rank("a", [a], {"g/a": 10})
        assert ranked[0].total_score == pytest.approx(62.0)
        assert ranked[0].sources == frozenset(
            {MatchSource.SEARCH, MatchSource.HISTORY, MatchSource.STARRED}
        )

    def test_orphan_hits_dropped(self) -> None:
        # Given
        live = _p("g/live")
        index = FakeIndex([IndexHit(_p("deleted/proj"), 5.0), IndexHit(live, 1.0)])

        # When
        ranked = Ranker(index).rank("proj", [live], {})

        # Then
        assert [m.project.path for m in ranked] == ["g/live"]

    def test_live_flags_win_over_indexed_copy(self) -> None:
        stale = _p("g/a")
        fresh = _p("g/a", starred=True)
        ranked = Ranker(FakeIndex([IndexHit(stale, 2.0)])).rank("a", [fresh], {})
        assert ranked[0].starred_bonus == 50

    def test_max_hits_passed_to_index(self) -> None:
        index = FakeIndex()
        Ranker(index, max_hits=7).rank("abc", [], {})
        assert index.calls == [("abc", 7)]

    def test_index_failure_propagates(self) -> None:
        index = FakeIndex(error=SearchIndexError.query_failed("abc", "closed"))
        with pytest.raises(SearchIndexError):
            Ranker(index).rank("abc", [_p("g/a")], {})


class TestApplyOptions:
    def _matches(self):
        projects = [
            _p("g/plain", member=True),
            _p("g/old", archived=True, member=True),
            _p("sandbox/tool"),
        ]
        return Ranker(FakeIndex()).rank("", projects, {})

    def test_hides_archived_and_excluded_by_default(self) -> None:
        visible = apply_options(self._matches(), SearchOptions(), lambda p: p.startswith("sandbox/"))
        assert [m.project.path for m in visible] == ["g/plain"]

    def test_show_everything(self) -> None:
        options = SearchOptions(limit=0, include_archived=True, include_excluded=True)
        visible = apply_options(self._matches(), options, lambda p: p.startswith("sandbox/"))
        assert len(visible) == 3

    def test_member_only_and_limit(self) -> None:
        options = SearchOptions(limit=1, include_archived=True, member_only=True)
        visible = apply_options(self._matches(), options, lambda p: False)
        assert [m.project.path for m in visible] == ["g/old"]
