"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (GLF__SECTION__KEY)
3. YAML config (~/.config/glf/config.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    GLF__<SECTION>__<KEY>=<VALUE>

Examples:
    GLF__GITLAB__URL=https://gitlab.example.com
    GLF__GITLAB__TOKEN=glpat-xxxx
    GLF__LOGGING__LEVEL=DEBUG
    GLF__SYNC__FULL_SYNC_INTERVAL_DAYS=3
"""

from fnmatch import fnmatchcase
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from glfind.config.constants import (
    HISTORY_FILE,
    INDEX_DIR,
    LAST_FULL_SYNC_FILE,
    LAST_SYNC_FILE,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v == "stderr":
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        GLF__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. The CLI's --verbose flag switches to DEBUG.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class GitLabConfig(BaseModel):
    """Remote GitLab instance.

    Env vars:
        GLF__GITLAB__URL: Instance base URL
        GLF__GITLAB__TOKEN: Personal access token (read_api scope)
        GLF__GITLAB__TIMEOUT_SEC: Per-request timeout
    """

    url: str = Field(default="", description="GitLab base URL, e.g. https://gitlab.example.com")
    token: str = Field(default="", description="Personal access token with read_api scope.")
    timeout_sec: float = Field(
        default=30.0,
        description="Per-request timeout. The only timeout applied to page fetches.",
    )
    per_page: int = Field(default=100, description="Page size for project listing (GitLab max 100).")
    max_concurrency: int = Field(
        default=10,
        description="Max in-flight page requests during a sync. "
        "RISK: High values may trip server-side rate limits.",
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        # Same fallback as a missing value
        return v if v > 0 else 30.0

    @field_validator("per_page")
    @classmethod
    def validate_per_page(cls, v: int) -> int:
        if not (1 <= v <= 100):
            raise ValueError(f"per_page must be 1-100, got {v}")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {v}")
        return v


class CacheConfig(BaseModel):
    """Local cache location.

    Env vars:
        GLF__CACHE__DIR: Cache directory (default ~/.cache/glf)
    """

    dir: Path = Field(default=Path("~/.cache/glf"), description="Cache directory.")

    @field_validator("dir")
    @classmethod
    def expand_dir(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @property
    def index_path(self) -> Path:
        return self.dir / INDEX_DIR

    @property
    def history_path(self) -> Path:
        return self.dir / HISTORY_FILE

    @property
    def last_sync_path(self) -> Path:
        return self.dir / LAST_SYNC_FILE

    @property
    def last_full_sync_path(self) -> Path:
        return self.dir / LAST_FULL_SYNC_FILE


class SyncConfig(BaseModel):
    """Freshness policy.

    Env vars:
        GLF__SYNC__FULL_SYNC_INTERVAL_DAYS: Max days between full reconciliations
        GLF__SYNC__BACKGROUND_BUDGET_SEC: Wait budget for background refresh
    """

    full_sync_interval_days: float = Field(
        default=7.0,
        description="Force a full sync when the last one is older than this. "
        "Full syncs are the only way remotely deleted projects leave the cache.",
    )
    background_budget_sec: float = Field(
        default=3.0,
        description="How long 'glf go' waits for its background refresh before returning.",
    )


class SearchConfig(BaseModel):
    """Ranking parameters.

    Env vars:
        GLF__SEARCH__MAX_HITS: Raw hits requested from the index per query
        GLF__SEARCH__DEFAULT_LIMIT: Results shown by default
    """

    max_hits: int = Field(
        default=100,
        description="Raw index hits per query. Items outside the top hits are invisible "
        "to that query even when history or starring would lift them.",
    )
    starred_bonus: int = Field(default=50, description="Bonus for starred projects.")
    default_limit: int = Field(default=20, description="Default number of results.")


class GlfConfig(BaseModel):
    """Root configuration for glfind."""

    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    excluded_paths: list[str] = Field(
        default_factory=list,
        description="Project path patterns hidden from results. 'group/*' hides a subtree.",
    )

    def is_excluded(self, project_path: str) -> bool:
        """Check if a project path matches any excluded pattern."""
        return any(_pattern_matches(pattern, project_path) for pattern in self.excluded_paths)


def _pattern_matches(pattern: str, project_path: str) -> bool:
    if len(pattern) > 2 and pattern.endswith("/*"):
        return project_path.startswith(pattern[:-1])
    return fnmatchcase(project_path, pattern)
