"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseSettings):
    """Cache configuration (backend-agnostic)."""

    backend: Literal["diskcache", "redis"] = Field(
        default="diskcache",
        description="Cache backend: 'diskcache' (SQLite) or 'redis'",
    )
    directory: Path = Field(
        default=Path("./.cache/trawlarr"),
        validation_alias=AliasChoices("dir", "directory"),
        description="Diskcache SQLite DB path",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    ttl_seconds: int = Field(
        default=3600,
        description="Default TTL for cache entries (seconds)",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",  # CACHE_BACKEND, CACHE_REDIS_URL, ...
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)


class JackettConfig(BaseModel):
    """Jackett server and per-indexer fan-out settings."""

    url: str = Field(
        default="http://localhost:9117",
        description="Jackett base URL (no trailing /api).",
    )
    api_key: str = Field(default="", description="Jackett API key.")
    search_timeout_seconds: float = Field(
        default=7.0,
        description="Per-indexer timeout for one search call.",
    )
    default_indexers: list[str] = Field(
        default_factory=lambda: ["all"],
        description="Indexers queried when the user config names none.",
    )
    failure_threshold: int = Field(
        default=5,
        description="Consecutive failures before an indexer is skipped.",
    )
    cooldown_seconds: float = Field(
        default=120.0,
        description="How long a failing indexer stays skipped.",
    )

    @field_validator("search_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("search_timeout_seconds must be > 0")
        return v


class CatalogConfig(BaseModel):
    """Catalog aggregation limits and result-cache TTLs."""

    search_limit: int = Field(default=30, description="Max items for search.")
    browse_limit: int = Field(default=100, description="Max items for browse.")
    cache_ttl_seconds: int = Field(
        default=3600,
        description="TTL of the aggregated result cache. 0 = disabled.",
    )
    min_query_length: int = Field(
        default=2,
        description="Trimmed queries shorter than this return nothing.",
    )
    selection_ttl_seconds: int = Field(
        default=86400,
        description="How long catalog items stay resolvable by stable id.",
    )
    skip_single_episodes: bool = Field(
        default=False,
        description="Drop single-episode releases from aggregated catalogs.",
    )


class DebridConfig(BaseModel):
    """Debrid polling budget and torrent info store settings."""

    poll_interval_seconds: float = Field(
        default=2.0,
        description="Sleep between readiness polls.",
    )
    max_poll_attempts: int = Field(
        default=5,
        description="Readiness polls before giving up with NOT_READY.",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for a single provider API call.",
    )
    torrent_info_dir: Path = Field(
        default=Path("./.data/torrents"),
        description="Folder holding one JSON file per torrent id.",
    )
    torrent_info_retention_seconds: int = Field(
        default=7 * 86400,
        description="Records older than this are removed by the sweep.",
    )
    sweep_interval_seconds: float = Field(
        default=3600.0,
        description="Interval of the background maintenance sweep.",
    )

    @field_validator("torrent_info_dir", mode="before")
    @classmethod
    def _validate_dir(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("max_poll_attempts")
    @classmethod
    def _validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_poll_attempts must be >= 1")
        return v


class AddonConfig(BaseModel):
    """Stremio add-on identity."""

    addon_id: str = Field(default="community.trawlarr")
    addon_name: str = Field(default="Trawlarr")
    description: str = Field(
        default="Search your Jackett indexers and stream through debrid.",
    )
    public_url: str | None = Field(
        default=None,
        description="Base URL used in stream links. Defaults to the request host.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/jackett/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="trawlarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=20.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout of the shared HTTP client.",
    )
    http_user_agent: str = Field(
        default="Trawlarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    jackett: JackettConfig = Field(default_factory=JackettConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    debrid: DebridConfig = Field(default_factory=DebridConfig)
    addon: AddonConfig = Field(default_factory=AddonConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "ttl_seconds": self.cache.ttl_seconds,
            },
            "jackett": self.jackett.model_dump(exclude={"api_key"}),
            "catalog": self.catalog.model_dump(),
            "debrid": self.debrid.model_dump(mode="json"),
            "addon": self.addon.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py reads TRAWLARR_* variables through this model, keeps only the
    values that were set, and merges them over YAML/defaults.

    Supported env var examples (flat, explicit):
    - TRAWLARR_JACKETT_URL
    - TRAWLARR_JACKETT_API_KEY
    - TRAWLARR_TORRENT_INFO_DIR
    - TRAWLARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAWLARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_dir: Optional[Path] = None
    cache_ttl_seconds: Optional[int] = None

    jackett_url: Optional[str] = None
    jackett_api_key: Optional[str] = None
    jackett_search_timeout_seconds: Optional[float] = None

    catalog_cache_ttl_seconds: Optional[int] = None

    torrent_info_dir: Optional[Path] = None
    torrent_info_retention_seconds: Optional[int] = None

    addon_public_url: Optional[str] = None

    @field_validator("cache_dir", "torrent_info_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
