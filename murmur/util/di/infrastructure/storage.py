"""Object storage infrastructure providers."""

from collections.abc import AsyncIterator

import httpx
from dishka import Scope, provide

from murmur.adapter.storage import HttpImageStore
from murmur.config import StorageSettings
from murmur.domain.repository import ImageStore
from murmur.util.di.base import ProviderBase
from murmur.util.error import ConfigurationError
from murmur.util.observability import instrument_httpx


class StorageProvider(ProviderBase):
    """Storage component base."""

    __mock_component__ = "storage"


class ProdStorageProvider(StorageProvider):
    """Production storage provider talking to the object storage API."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_http_client(
        self, storage_settings: StorageSettings
    ) -> AsyncIterator[httpx.AsyncClient]:
        """Provide HTTP client for the storage API.

        Raises:
            ConfigurationError: If no storage URL is configured
        """
        if not storage_settings.url:
            raise ConfigurationError("Storage URL must be configured")

        instrument_httpx()
        async with httpx.AsyncClient(
            base_url=storage_settings.url, timeout=storage_settings.timeout
        ) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_image_store(
        self, client: httpx.AsyncClient, storage_settings: StorageSettings
    ) -> ImageStore:
        """Provide image store."""
        return HttpImageStore(
            client=client,
            bucket=storage_settings.bucket,
            folder=storage_settings.folder,
            public_base_url=storage_settings.public_base_url,
            api_key=storage_settings.api_key,
        )
