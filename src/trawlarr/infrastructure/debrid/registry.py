"""Registry that builds a debrid provider for a user's configured service."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import structlog

from trawlarr.domain.entities.errors import UnknownDebridProvider
from trawlarr.domain.entities.torrent import UserConfig
from trawlarr.domain.ports.debrid_provider import DebridProviderPort
from trawlarr.infrastructure.debrid.alldebrid import AllDebridProvider
from trawlarr.infrastructure.debrid.realdebrid import RealDebridProvider

log = structlog.get_logger(__name__)

ProviderFactory = Callable[[httpx.AsyncClient, str, float], DebridProviderPort]

def _realdebrid(client: httpx.AsyncClient, api_key: str, timeout: float) -> DebridProviderPort:
    return RealDebridProvider(client, api_key, timeout=timeout)


def _alldebrid(client: httpx.AsyncClient, api_key: str, timeout: float) -> DebridProviderPort:
    return AllDebridProvider(client, api_key, timeout=timeout)


class DebridProviderRegistry:
    """Maps provider ids (``realdebrid``, ``alldebrid``) to factories.

    Providers are cheap wrappers around the shared HTTP client, so one is
    built per request with that user's API key.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        request_timeout: float = 15.0,
    ) -> None:
        self._http_client = http_client
        self._timeout = request_timeout
        self._factories: dict[str, ProviderFactory] = {}
        self.register("realdebrid", _realdebrid)
        self.register("alldebrid", _alldebrid)

    def register(self, provider_id: str, factory: ProviderFactory) -> None:
        self._factories[provider_id] = factory
        log.debug("debrid_provider_registered", provider=provider_id)

    @property
    def supported_providers(self) -> list[str]:
        return sorted(self._factories)

    def short_name(self, provider_id: str) -> str:
        """Short label for stream names; the id itself for unknown providers."""
        factory = self._factories.get(provider_id)
        if factory is None:
            return provider_id
        return factory(self._http_client, "", self._timeout).short_name

    def create(self, user_config: UserConfig) -> DebridProviderPort:
        """Provider bound to ``user_config.debrid_api_key``.

        Raises:
            UnknownDebridProvider: ``debrid_id`` is empty or not registered.
        """
        factory = self._factories.get(user_config.debrid_id)
        if factory is None:
            raise UnknownDebridProvider(
                f"Unknown debrid provider: {user_config.debrid_id!r}"
            )
        return factory(self._http_client, user_config.debrid_api_key, self._timeout)
