"""Domain layer DI providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide

from murmur.config import SyncSettings
from murmur.domain.repository import CommentRepository, ImageStore
from murmur.domain.service import CommentSyncService
from murmur.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    The sync service is APP-scoped: one cached view per process, shared by
    every consumer of the container.
    """

    scope = Scope.APP

    @provide
    async def get_comment_sync_service(
        self,
        comment_repository: CommentRepository,
        image_store: ImageStore,
        sync_settings: SyncSettings,
    ) -> AsyncIterator[CommentSyncService]:
        """Provide a started comment sync service.

        The service subscribes to the change feed and loads the initial
        snapshot on first use, and is stopped when the container closes.
        """
        service = CommentSyncService(
            comment_repository=comment_repository,
            image_store=image_store,
            settle_delay_seconds=sync_settings.settle_delay_seconds,
        )
        await service.start()
        try:
            yield service
        finally:
            await service.stop()
