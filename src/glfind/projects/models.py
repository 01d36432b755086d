"""Project catalog types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Project:
    """A GitLab project as cached locally.

    ``path`` (path with namespace) is the identity used everywhere: index
    document id, history key and orphan filtering.
    """

    path: str  # e.g. "company/group/subgroup/project-name"
    name: str
    description: str = ""
    starred: bool = False
    archived: bool = False
    member: bool = False

    @property
    def namespace(self) -> str:
        """Everything before the last path segment ("" for top-level projects)."""
        head, sep, _ = self.path.rpartition("/")
        return head if sep else ""

    def display_string(self) -> str:
        """Render as ``[namespace] > name``, or just the name without a namespace."""
        if self.namespace:
            return f"[{self.namespace}] > {self.name}"
        return self.name

    def web_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self.path.lstrip('/')}"


@dataclass(frozen=True, slots=True)
class ProjectFilter:
    """Listing filter passed through to every page request of one fetch."""

    changed_since: datetime | None = None
    membership: bool = False
    starred: bool = False


@dataclass(frozen=True, slots=True)
class ProjectPage:
    """One page of a paginated listing plus the totals reported by the server."""

    items: list[Project]
    total_pages: int
    total_count: int
