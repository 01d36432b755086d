"""Contract between the sync engine and a remote project catalog."""

from __future__ import annotations

from typing import Literal, Protocol

from glfind.projects.models import ProjectFilter, ProjectPage

FlagName = Literal["starred", "membership"]


class RemoteSource(Protocol):
    """A paginated project listing plus per-user flag sets.

    Implementations must be safe to call from several threads at once;
    ``ParallelFetcher`` issues page requests concurrently.
    """

    def fetch_page(self, page: int, per_page: int, project_filter: ProjectFilter) -> ProjectPage:
        """Fetch one page (1-based) of the listing."""
        ...

    def fetch_flag_set(self, flag: FlagName) -> set[str]:
        """Paths of every project carrying ``flag`` for the current user."""
        ...

    def current_username(self) -> str:
        """Account the credentials belong to; fails when the remote is unreachable."""
        ...
