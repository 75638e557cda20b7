from .debrid import DebridErrorKind, DebridHandle, FileHint, TorrentSource
from .errors import (
    DebridError,
    IndexerError,
    TorrentInfoNotFound,
    TrawlarrError,
    UnknownDebridProvider,
)
from .torrent import (
    CanonicalTorrent,
    CatalogMode,
    ClassifiedItem,
    ContentType,
    RawResult,
    TorrentInfoRecord,
    UserConfig,
    classified_item_from_dict,
    classified_item_to_dict,
)

__all__ = [
    "CanonicalTorrent",
    "CatalogMode",
    "ClassifiedItem",
    "ContentType",
    "DebridError",
    "DebridErrorKind",
    "DebridHandle",
    "FileHint",
    "IndexerError",
    "RawResult",
    "TorrentInfoNotFound",
    "TorrentInfoRecord",
    "TorrentSource",
    "TrawlarrError",
    "UnknownDebridProvider",
    "UserConfig",
    "classified_item_from_dict",
    "classified_item_to_dict",
]
