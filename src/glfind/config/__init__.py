"""Config module exports."""

from glfind.config.loader import load_config, require_remote
from glfind.config.models import (
    CacheConfig,
    GitLabConfig,
    GlfConfig,
    LoggingConfig,
    SearchConfig,
    SyncConfig,
)

__all__ = [
    "load_config",
    "require_remote",
    "GlfConfig",
    "GitLabConfig",
    "CacheConfig",
    "SyncConfig",
    "SearchConfig",
    "LoggingConfig",
]
