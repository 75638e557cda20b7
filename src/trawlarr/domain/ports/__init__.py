from .cache import CachePort
from .debrid_provider import DebridProviderPort
from .indexer_client import IndexerClientPort
from .selection_repository import SelectionRepository
from .torrent_info_store import TorrentInfoStorePort

__all__ = [
    "CachePort",
    "DebridProviderPort",
    "IndexerClientPort",
    "SelectionRepository",
    "TorrentInfoStorePort",
]
