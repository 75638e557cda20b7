from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from trawlarr.infrastructure.config import load_config
from trawlarr.infrastructure.logging.setup import configure_logging
from trawlarr.interfaces.app import build_app

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="trawlarr")

    # Server options
    parser.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )

    # Config wiring flags
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--jackett-url",
        default=None,
        help="Override Jackett base URL.",
    )
    parser.add_argument(
        "--torrent-info-dir",
        default=None,
        help="Override the torrent info store folder.",
    )
    parser.add_argument(
        "--public-url",
        default=None,
        help="Base URL written into stream links (behind a reverse proxy).",
    )
    parser.add_argument(
        "--cache-dir",
        default=None,
        help="Override the diskcache folder.",
    )
    parser.add_argument(
        "--environment",
        default=None,
        choices=["dev", "test", "prod"],
        help="Runtime environment (prod switches logs to JSON).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    return parser.parse_args(argv)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat override keys understood by ``load_config``."""
    flags = {
        "jackett_url": args.jackett_url,
        "torrent_info_dir": args.torrent_info_dir,
        "addon_public_url": args.public_url,
        "cache_dir": args.cache_dir,
        "environment": args.environment,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    return {key: value for key, value in flags.items() if value}


def start(argv: Iterable[str] | None = None) -> None:
    """Process entrypoint: load config once, then build and serve the app."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7000"))

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=build_cli_overrides(args),
    )

    log_config = configure_logging(config)
    log.info("trawlarr_starting", host=host, port=port, environment=config.environment)

    uvicorn.run(
        build_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )


if __name__ == "__main__":
    raise SystemExit(start())
