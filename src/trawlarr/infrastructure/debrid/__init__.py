"""Debrid providers and the helpers shared between them."""

from __future__ import annotations

from .alldebrid import AllDebridProvider
from .file_selection import DebridFile, select_file
from .realdebrid import RealDebridProvider
from .registry import DebridProviderRegistry
from .torrent_source import build_torrent_source, magnet_from_info_hash

__all__ = [
    "AllDebridProvider",
    "DebridFile",
    "DebridProviderRegistry",
    "RealDebridProvider",
    "build_torrent_source",
    "magnet_from_info_hash",
    "select_file",
]
