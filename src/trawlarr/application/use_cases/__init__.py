from .catalog_search import CatalogSearchUseCase
from .indexer_search import IndexerSearchUseCase
from .resolve_download import ResolveDownloadUseCase

__all__ = ["CatalogSearchUseCase", "IndexerSearchUseCase", "ResolveDownloadUseCase"]
