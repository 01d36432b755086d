"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (GLF__SECTION__KEY)
3. YAML config file (~/.config/glf/config.yaml)
4. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from glfind.config.models import (
    CacheConfig,
    GitLabConfig,
    GlfConfig,
    LoggingConfig,
    SearchConfig,
    SyncConfig,
)
from glfind.core.errors import ConfigError
from glfind.core.fileio import atomic_write_text

DEFAULT_CONFIG_PATH = Path("~/.config/glf/config.yaml").expanduser()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class GlfSettings(BaseSettings):
        """Root config. Env vars: GLF__GITLAB__URL, GLF__CACHE__DIR, etc."""

        model_config = SettingsConfigDict(
            env_prefix="GLF__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        gitlab: GitLabConfig = GitLabConfig()
        cache: CacheConfig = CacheConfig()
        sync: SyncConfig = SyncConfig()
        search: SearchConfig = SearchConfig()
        logging: LoggingConfig = LoggingConfig()
        excluded_paths: list[str] = []

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return GlfSettings


def load_config(config_path: Path | None = None, **kwargs: Any) -> GlfConfig:
    """Load config: defaults < YAML file < env vars < kwargs.

    Args:
        config_path: YAML file to read. Defaults to ~/.config/glf/config.yaml.
            A missing file is not an error.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    yaml_config = _load_yaml(config_path or DEFAULT_CONFIG_PATH)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return GlfConfig.model_validate(settings.model_dump())


def require_remote(config: GlfConfig) -> None:
    """Raise unless the GitLab URL and token are configured."""
    if not config.gitlab.url:
        raise ConfigError.missing_required("gitlab.url")
    if not config.gitlab.token:
        raise ConfigError.missing_required("gitlab.token")


def update_excluded_paths(
    patterns: list[str],
    config_path: Path | None = None,
) -> None:
    """Persist ``excluded_paths`` into the YAML file, keeping every other key."""
    path = config_path or DEFAULT_CONFIG_PATH
    data = _load_yaml(path)
    data["excluded_paths"] = list(patterns)
    atomic_write_text(path, yaml.safe_dump(data, default_flow_style=False, sort_keys=False))


def add_exclusion(config: GlfConfig, pattern: str, config_path: Path | None = None) -> bool:
    """Add a pattern unless already present. Returns True if the file changed."""
    if pattern in config.excluded_paths:
        return False
    config.excluded_paths.append(pattern)
    update_excluded_paths(config.excluded_paths, config_path)
    return True


def remove_exclusion(config: GlfConfig, pattern: str, config_path: Path | None = None) -> bool:
    """Remove a pattern. Returns True if the file changed."""
    if pattern not in config.excluded_paths:
        return False
    config.excluded_paths = [p for p in config.excluded_paths if p != pattern]
    update_excluded_paths(config.excluded_paths, config_path)
    return True
