"""Bounded-concurrency retrieval of a paginated listing."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait

import structlog

from glfind.config.constants import FIRST_PAGE
from glfind.core.errors import FetchError, GlfError
from glfind.projects.models import Project, ProjectFilter, ProjectPage
from glfind.remote.base import RemoteSource

logger = structlog.get_logger()


class ParallelFetcher:
    """Fetches every page of a listing, all or nothing.

    Page 1 is fetched on the calling thread to learn the page count; the
    remaining pages run on a pool of ``max_concurrency`` workers. The first
    failing page aborts the fetch: queued pages are cancelled and the error
    is raised. Items come back in page order whatever the completion order.

    No timeout is applied here beyond the remote client's own; retries belong
    to the caller, at whole-sync granularity.
    """

    def __init__(self, remote: RemoteSource, *, per_page: int = 100, max_concurrency: int = 10) -> None:
        self._remote = remote
        self.per_page = per_page
        self.max_concurrency = max_concurrency

    def _fetch(self, page: int, project_filter: ProjectFilter) -> ProjectPage:
        try:
            return self._remote.fetch_page(page, self.per_page, project_filter)
        except GlfError as e:
            raise FetchError.page_failed(page, e.message) from e
        except Exception as e:
            raise FetchError.page_failed(page, str(e)) from e

    def fetch_all(self, project_filter: ProjectFilter | None = None) -> list[Project]:
        project_filter = project_filter or ProjectFilter()
        first = self._fetch(FIRST_PAGE, project_filter)
        logger.debug(
            "fetch_started",
            total_pages=first.total_pages,
            total_count=first.total_count,
            incremental=project_filter.changed_since is not None,
        )
        if first.total_pages <= FIRST_PAGE:
            return list(first.items)

        pages: dict[int, list[Project]] = {FIRST_PAGE: first.items}
        executor = ThreadPoolExecutor(
            max_workers=self.max_concurrency, thread_name_prefix="glfind-fetch"
        )
        futures: dict[Future[ProjectPage], int] = {
            executor.submit(self._fetch, page, project_filter): page
            for page in range(FIRST_PAGE + 1, first.total_pages + 1)
        }
        try:
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                for future in done:
                    error = future.exception()
                    if error is not None:
                        logger.warning("fetch_aborted", page=futures[future], error=str(error))
                        raise error
                    pages[futures[future]] = future.result().items
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        items = [item for page in sorted(pages) for item in pages[page]]
        logger.debug("fetch_completed", pages=len(pages), items=len(items))
        return items
