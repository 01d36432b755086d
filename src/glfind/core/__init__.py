"""Core module exports."""

from glfind.core.errors import (
    ConfigError,
    ErrorCode,
    FetchError,
    GlfError,
    InternalError,
    PersistenceError,
    RepoError,
    SearchIndexError,
)
from glfind.core.logging import (
    clear_operation_id,
    configure_logging,
    get_operation_id,
    set_operation_id,
)
from glfind.core.progress import spinner, status

__all__ = [
    # Errors
    "GlfError",
    "ErrorCode",
    "ConfigError",
    "SearchIndexError",
    "FetchError",
    "PersistenceError",
    "RepoError",
    "InternalError",
    # Logging
    "clear_operation_id",
    "configure_logging",
    "get_operation_id",
    "set_operation_id",
    # Progress
    "spinner",
    "status",
]
