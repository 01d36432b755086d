"""GitLab REST adapter over httpx."""

from __future__ import annotations

from datetime import UTC
from typing import Any

import httpx
import structlog

from glfind.core.errors import FetchError
from glfind.projects.models import Project, ProjectFilter, ProjectPage
from glfind.remote.base import FlagName
from glfind.sync.fetcher import ParallelFetcher

logger = structlog.get_logger()

API_PREFIX = "/api/v4"
FLAG_PAGE_SIZE = 100


class GitLabClient:
    """Reads the project catalog from ``GET /api/v4/projects``.

    ``simple=true`` keeps payloads small; paging totals come from the
    ``X-Total-Pages`` and ``X-Total`` headers. The per-request timeout is the
    only timeout applied to a page.

    Args:
        base_url: Instance URL, e.g. ``https://gitlab.example.com``.
        token: Personal access token, sent as ``PRIVATE-TOKEN``.
        timeout: Seconds per request.
        max_concurrency: Parallel page requests when collecting flag sets.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        max_concurrency: int = 10,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.max_concurrency = max_concurrency
        self._client = httpx.Client(
            base_url=self.base_url + API_PREFIX,
            headers={"PRIVATE-TOKEN": token, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitLabClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        url = f"{self.base_url}{API_PREFIX}{path}"
        try:
            response = self._client.get(path, params=params)
        except httpx.RequestError as e:
            raise FetchError.request_failed(url, str(e)) from e
        if response.status_code >= 400:
            raise FetchError.request_failed(
                url, f"HTTP {response.status_code}", status_code=response.status_code
            )
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise FetchError.bad_response(str(response.request.url), f"invalid JSON: {e}") from e

    def fetch_page(self, page: int, per_page: int, project_filter: ProjectFilter) -> ProjectPage:
        params: dict[str, Any] = {
            "simple": "true",
            "per_page": per_page,
            "page": page,
            "order_by": "id",
            "sort": "asc",
        }
        if project_filter.membership:
            params["membership"] = "true"
        if project_filter.starred:
            params["starred"] = "true"
        if project_filter.changed_since is not None:
            since = project_filter.changed_since.astimezone(UTC).replace(microsecond=0)
            params["last_activity_after"] = since.isoformat().replace("+00:00", "Z")

        response = self._get("/projects", params)
        payload = self._json(response)
        if not isinstance(payload, list):
            raise FetchError.bad_response(str(response.request.url), "expected a JSON array")
        items = [_project_from_json(raw) for raw in payload]

        total_pages = _int_header(response, "X-Total-Pages", default=page)
        total_count = _int_header(response, "X-Total", default=len(items))
        logger.debug("page_fetched", page=page, items=len(items), total_pages=total_pages)
        return ProjectPage(items=items, total_pages=total_pages, total_count=total_count)

    def fetch_flag_set(self, flag: FlagName) -> set[str]:
        """Paths carrying ``flag``, paged through the same bounded pool as a sync.

        Raises:
            FetchError: If any page fails.
        """
        project_filter = ProjectFilter(
            membership=flag == "membership",
            starred=flag == "starred",
        )
        fetcher = ParallelFetcher(
            self, per_page=FLAG_PAGE_SIZE, max_concurrency=self.max_concurrency
        )
        return {p.path for p in fetcher.fetch_all(project_filter)}

    def current_username(self) -> str:
        """Username owning the token. Doubles as a connection check."""
        response = self._get("/user")
        payload = self._json(response)
        if not isinstance(payload, dict) or "username" not in payload:
            raise FetchError.bad_response(str(response.request.url), "missing username")
        return str(payload["username"])


def _int_header(response: httpx.Response, name: str, *, default: int) -> int:
    # GitLab omits the totals for very large collections
    value = response.headers.get(name, "")
    try:
        return int(value)
    except ValueError:
        return default


def _project_from_json(raw: Any) -> Project:
    if not isinstance(raw, dict) or "path_with_namespace" not in raw:
        raise FetchError.bad_response("/projects", "project entry without path_with_namespace")
    return Project(
        path=raw["path_with_namespace"],
        name=raw.get("name") or raw["path_with_namespace"].rsplit("/", 1)[-1],
        description=raw.get("description") or "",
        archived=bool(raw.get("archived", False)),
    )
