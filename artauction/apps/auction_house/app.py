"""
Auction house app: wires the database, repository, player accounts and the auction house
"""
from typing import Self

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)

from artauction.apps.auction_house.catalog.artwork_source import ArtworkSource
from artauction.apps.auction_house.commands.replenish_artworks import (
    ReplenishAuctionHouseArtworks,
)
from artauction.apps.auction_house.config import AuctionHouseSettings
from artauction.apps.auction_house.data import Base
from artauction.apps.auction_house.data.artwork_repository import ArtworkRepository
from artauction.apps.auction_house.domain.auction_house import AuctionHouse
from artauction.apps.auction_house.services.player_accounts import PlayerAccounts
from artauction.core.async_service import AsyncService
from artauction.services.logging_service import AsyncLoggingService


class App(AsyncService):
    """
    Auction house app

    Service lifecycle
    -----------------
    - start: starts logging, creates the database tables, and then starts the auction house
    - stop: stops the auction house, disposes the database engine, and then stops logging
    """

    def __init__(
        self,
        settings: AuctionHouseSettings,
        artwork_source: ArtworkSource | None = None,
        engine: AsyncEngine | None = None,
    ):
        """
        :param artwork_source: used to replenish the auction house pool
        :param engine: if None, then the engine is created from `settings.database_url`
        """
        super().__init__()
        self.settings = settings
        self.logging_service = AsyncLoggingService(level=settings.log_level)
        self.engine = engine if engine else create_async_engine(settings.database_url)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

        self.repository = ArtworkRepository(self.session_factory)
        self.player_accounts = PlayerAccounts(self.repository, settings.starting_balance)
        self.auction_house = AuctionHouse(
            repository=self.repository,
            settings=settings,
            replenish_artworks=ReplenishAuctionHouseArtworks(artwork_source, self.repository)
            if artwork_source
            else None,
        )

    @classmethod
    def from_env(cls, artwork_source: ArtworkSource | None = None) -> Self:
        """
        Constructs a new app instance using settings loaded from the environment
        """
        return cls(AuctionHouseSettings.from_env(), artwork_source)

    async def _start(self):
        await self.logging_service.start()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await self.auction_house.start()
        self._logger.info("auction house started: %s", self.auction_house.id)

    async def _stop(self):
        await self.auction_house.stop()
        await self.engine.dispose()
        await self.logging_service.stop()
