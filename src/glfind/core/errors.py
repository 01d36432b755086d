"""glfind error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index
- 4xxx: Remote / fetch
- 5xxx: Persistence
- 6xxx: Local git checkout
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Index (3xxx)
    INDEX_OPEN_FAILED = 3001
    INDEX_QUERY_FAILED = 3002
    INDEX_WRITE_FAILED = 3003
    INDEX_NOT_FOUND = 3004
    INDEX_VERSION_MISMATCH = 3005

    # Remote (4xxx)
    FETCH_PAGE_FAILED = 4001
    FETCH_REQUEST_FAILED = 4002
    FETCH_BAD_RESPONSE = 4003

    # Persistence (5xxx)
    PERSIST_WRITE_FAILED = 5001
    PERSIST_CORRUPT = 5002

    # Repository (6xxx)
    REPO_NOT_FOUND = 6001
    REPO_NO_ORIGIN = 6002
    REPO_REMOTE_UNSUPPORTED = 6003
    REPO_HOST_UNKNOWN = 6004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class GlfError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'FETCH_PAGE_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(GlfError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )


class SearchIndexError(GlfError):
    """Full-text index errors.

    ``version_mismatch`` is consumed by the index version guard and never
    reaches callers of the guard.
    """

    @classmethod
    def open_failed(cls, path: str, reason: str) -> "SearchIndexError":
        return cls(
            code=ErrorCode.INDEX_OPEN_FAILED,
            message=f"Failed to open search index at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def query_failed(cls, query: str, reason: str) -> "SearchIndexError":
        return cls(
            code=ErrorCode.INDEX_QUERY_FAILED,
            message=f"Search failed for '{query}': {reason}",
            details={"query": query, "reason": reason},
        )

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "SearchIndexError":
        return cls(
            code=ErrorCode.INDEX_WRITE_FAILED,
            message=f"Failed to write search index at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def not_found(cls, path: str) -> "SearchIndexError":
        return cls(
            code=ErrorCode.INDEX_NOT_FOUND,
            message=f"Search index not found at {path}, run 'glf sync' to build it",
            details={"path": path},
        )

    @classmethod
    def version_mismatch(cls, found: int | None, expected: int) -> "SearchIndexError":
        found_text = "missing" if found is None else str(found)
        return cls(
            code=ErrorCode.INDEX_VERSION_MISMATCH,
            message=f"Index schema version {found_text}, current version {expected}",
            details={"found": found, "expected": expected},
        )


class FetchError(GlfError):
    """Remote fetch failures. A sync that hits one aborts and leaves the cache untouched."""

    @classmethod
    def page_failed(cls, page: int, reason: str) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_PAGE_FAILED,
            message=f"Failed to fetch page {page}: {reason}",
            retryable=True,
            details={"page": page, "reason": reason},
        )

    @classmethod
    def request_failed(cls, url: str, reason: str, status_code: int | None = None) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_REQUEST_FAILED,
            message=f"Request to {url} failed: {reason}",
            retryable=True,
            details={"url": url, "reason": reason, "status_code": status_code},
        )

    @classmethod
    def bad_response(cls, url: str, reason: str) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_BAD_RESPONSE,
            message=f"Unexpected response from {url}: {reason}",
            details={"url": url, "reason": reason},
        )


class PersistenceError(GlfError):
    """Local state file errors."""

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "PersistenceError":
        return cls(
            code=ErrorCode.PERSIST_WRITE_FAILED,
            message=f"Failed to write {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def corrupt(cls, path: str, reason: str) -> "PersistenceError":
        return cls(
            code=ErrorCode.PERSIST_CORRUPT,
            message=f"Unreadable state at {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class RepoError(GlfError):
    """Errors resolving the project behind a local git checkout."""

    @classmethod
    def not_found(cls, directory: str) -> "RepoError":
        return cls(
            code=ErrorCode.REPO_NOT_FOUND,
            message=f"Not inside a git repository: {directory}",
            details={"directory": directory},
        )

    @classmethod
    def no_origin(cls, directory: str) -> "RepoError":
        return cls(
            code=ErrorCode.REPO_NO_ORIGIN,
            message=f"Repository at {directory} has no 'origin' remote",
            details={"directory": directory},
        )

    @classmethod
    def unsupported_remote(cls, remote_url: str) -> "RepoError":
        return cls(
            code=ErrorCode.REPO_REMOTE_UNSUPPORTED,
            message=f"Unsupported git remote URL: {remote_url} (expected SSH or HTTPS)",
            details={"remote_url": remote_url},
        )

    @classmethod
    def unknown_host(cls, host: str, gitlab_host: str) -> "RepoError":
        return cls(
            code=ErrorCode.REPO_HOST_UNKNOWN,
            message=(
                f"Git remote host '{host}' is neither the configured GitLab"
                f" '{gitlab_host}' nor a known public host"
            ),
            details={"host": host, "gitlab_host": gitlab_host},
        )


class InternalError(GlfError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
