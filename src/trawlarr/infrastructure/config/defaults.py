"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "trawlarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 20.0,
        "user_agent": "Trawlarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": "./.cache/trawlarr",
        "backend": "diskcache",
        "ttl_seconds": 3600,
    },
    "jackett": {
        "url": "http://localhost:9117",
        "api_key": "",
        "search_timeout_seconds": 7.0,
        "default_indexers": ["all"],
    },
    "catalog": {
        "search_limit": 30,
        "browse_limit": 100,
        "cache_ttl_seconds": 3600,
        "min_query_length": 2,
    },
    "debrid": {
        "poll_interval_seconds": 2.0,
        "max_poll_attempts": 5,
        "torrent_info_dir": "./.data/torrents",
        "torrent_info_retention_seconds": 7 * 86400,
        "sweep_interval_seconds": 3600,
    },
    "addon": {
        "addon_id": "community.trawlarr",
        "addon_name": "Trawlarr",
    },
}
