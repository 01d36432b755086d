"""Schema-version guard for the on-disk project index."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

import structlog

from glfind.config.constants import INDEX_SCHEMA_VERSION
from glfind.core.errors import ErrorCode, SearchIndexError
from glfind.index.lexical import ProjectIndex

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class OpenedIndex:
    """Result of ``IndexVersionGuard.open``.

    ``rebuilt`` means an incompatible index was thrown away; the caller must
    run a forced Full sync before serving results from it.
    """

    index: ProjectIndex
    rebuilt: bool = False
    created: bool = False

    @property
    def needs_full_sync(self) -> bool:
        return self.rebuilt or self.created


class IndexVersionGuard:
    """Opens the index, recreating it when the stored schema version drifts.

    A missing or different version marker is never served: the directory is
    removed and a fresh index stamped with ``version`` takes its place. Any
    other open failure propagates as ``SearchIndexError``.
    """

    def __init__(self, path: Path, version: int = INDEX_SCHEMA_VERSION) -> None:
        self.path = path
        self.version = version

    def open(self) -> OpenedIndex:
        if not ProjectIndex.exists(self.path):
            index = ProjectIndex.create(self.path, version=self.version)
            logger.info("index_initialized", path=str(self.path), version=self.version)
            return OpenedIndex(index=index, created=True)

        try:
            return OpenedIndex(index=ProjectIndex.open(self.path, version=self.version))
        except SearchIndexError as e:
            if e.code != ErrorCode.INDEX_VERSION_MISMATCH:
                raise
            logger.warning(
                "index_version_mismatch",
                path=str(self.path),
                found=e.details.get("found"),
                expected=self.version,
            )

        self._remove()
        index = ProjectIndex.create(self.path, version=self.version)
        logger.info("index_rebuilt", path=str(self.path), version=self.version)
        return OpenedIndex(index=index, rebuilt=True)

    def _remove(self) -> None:
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            raise SearchIndexError.open_failed(str(self.path), f"cannot remove stale index: {e}") from e
