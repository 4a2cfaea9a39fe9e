"""
Durable store for players, player owned artworks, the auction house pool and the circulation registry
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from artauction.apps.auction_house.data import AsyncSqlAlchemySupport
from artauction.apps.auction_house.data.auction_house import (
    TAuctionHouseArtwork,
    TArtworkIdRegistry,
)
from artauction.apps.auction_house.data.player import TPlayer, TPlayerArtwork
from artauction.apps.auction_house.domain.artwork import Artwork, ArtworkId
from artauction.apps.auction_house.domain.player import STARTING_BALANCE
from artauction.apps.auction_house.errors import (
    PlayerAlreadyExistsError,
    PlayerNotFoundError,
    DuplicateArtworkError,
    ArtworkNotFoundError,
)


@dataclass(slots=True)
class PlayerRecord:
    """
    Persisted player state
    """

    email: str
    money: int
    net_worth: int
    is_logged_in: bool
    artworks: list[Artwork] = field(default_factory=list)


def _check_batch_for_duplicates(artworks: Iterable[Artwork]):
    duplicates = [
        artwork_id
        for artwork_id, count in Counter(artwork.id for artwork in artworks).items()
        if count > 1
    ]
    if duplicates:
        raise DuplicateArtworkError(duplicates)


class ArtworkRepository(AsyncSqlAlchemySupport):
    """
    Every operation runs in its own transaction. Failures are raised and the transaction is rolled back.

    Notes
    -----
    - NotFoundError subclasses are raised when the player or artwork does not exist
    - ConflictError subclasses are raised for duplicate players or artworks
    """

    # players

    async def add_player(self, email: str, money: int = STARTING_BALANCE):
        async with self.session_factory.begin() as session:
            if await session.get(TPlayer, email) is not None:
                raise PlayerAlreadyExistsError(email)
            session.add(TPlayer(email=email, money=money, net_worth=money))

    async def get_player(self, email: str) -> PlayerRecord:
        async with self.session_factory() as session:
            player = await self._get_player(session, email)
            return PlayerRecord(
                email=player.email,
                money=player.money,
                net_worth=player.net_worth,
                is_logged_in=player.is_logged_in,
                artworks=await self._get_players_artwork(session, email),
            )

    async def update_player(
        self,
        email: str,
        is_logged_in: bool,
        money: int,
        net_worth: int | None = None,
    ):
        async with self.session_factory.begin() as session:
            player = await self._get_player(session, email)
            player.is_logged_in = is_logged_in
            player.money = money
            if net_worth is not None:
                player.net_worth = net_worth

    async def remove_player(self, email: str):
        async with self.session_factory.begin() as session:
            player = await self._get_player(session, email)
            await session.execute(
                delete(TPlayerArtwork).where(TPlayerArtwork.player_email == email)
            )
            await session.delete(player)

    # player artworks

    async def get_all_of_players_artwork(self, email: str) -> list[Artwork]:
        async with self.session_factory() as session:
            await self._get_player(session, email)
            return await self._get_players_artwork(session, email)

    async def add_artworks_to_player(self, email: str, artworks: list[Artwork]):
        """
        :raises PlayerNotFoundError:
        :raises DuplicateArtworkError: if the batch contains duplicates, or if any artwork is already owned by a
                                       player
        """
        _check_batch_for_duplicates(artworks)
        async with self.session_factory.begin() as session:
            await self._get_player(session, email)
            owned = (
                await session.scalars(
                    select(TPlayerArtwork.artwork_id).where(
                        TPlayerArtwork.artwork_id.in_([artwork.id for artwork in artworks])
                    )
                )
            ).all()
            if owned:
                raise DuplicateArtworkError(list(owned))
            session.add_all(TPlayerArtwork.create(email, artwork) for artwork in artworks)

    async def remove_artwork_from_player_by_id(self, email: str, artwork_id: ArtworkId):
        async with self.session_factory.begin() as session:
            await self._get_player(session, email)
            player_artwork = await self._get_player_artwork(session, email, artwork_id)
            await session.delete(player_artwork)

    async def update_player_artwork_by_id(self, email: str, artwork: Artwork):
        """
        Overwrites the stored artwork with the matching id
        """
        async with self.session_factory.begin() as session:
            await self._get_player(session, email)
            player_artwork = await self._get_player_artwork(session, email, artwork.id)
            player_artwork.artwork = artwork.to_dict()

    # settlement

    async def settle_sale(
        self,
        artwork: Artwork,
        price: int,
        buyer_email: str,
        seller_email: str | None = None,
    ):
        """
        Moves a sold artwork to the buyer and transfers the price in a single transaction.

        - seller_email=None means the auction house sold the artwork, and it is removed from the house pool
        - money moves by the price, and net worth is recomputed from the stored artworks
        - login state is left unchanged

        If any step fails, then nothing is stored.

        :param artwork: the buyer's copy of the artwork, with the sale recorded
        :raises PlayerNotFoundError: if the buyer or seller does not exist
        :raises ArtworkNotFoundError: if the seller does not own the artwork
        :raises DuplicateArtworkError: if the artwork is owned by another player
        """
        async with self.session_factory.begin() as session:
            buyer = await self._get_player(session, buyer_email)
            if seller_email is None:
                house_artwork = await session.get(TAuctionHouseArtwork, artwork.id)
                if house_artwork is not None:
                    await session.delete(house_artwork)
            else:
                seller = await self._get_player(session, seller_email)
                await session.delete(await self._get_player_artwork(session, seller_email, artwork.id))
                await session.flush()
                seller.money += price
                seller.net_worth = seller.money + await self._sum_purchase_prices(session, seller_email)

            if await session.get(TPlayerArtwork, artwork.id) is not None:
                raise DuplicateArtworkError([artwork.id])
            session.add(TPlayerArtwork.create(buyer_email, artwork))
            await session.flush()
            buyer.money -= price
            buyer.net_worth = buyer.money + await self._sum_purchase_prices(session, buyer_email)

    # auction house

    async def set_auction_house_artworks(self, artworks: list[Artwork]):
        """
        Replaces the auction house pool.

        Artworks that are not already in the pool are registered in the circulation registry.

        :raises DuplicateArtworkError: if the batch contains duplicates, or if a new artwork was already admitted
                                       into circulation
        """
        _check_batch_for_duplicates(artworks)
        async with self.session_factory.begin() as session:
            current_ids = set(
                (await session.scalars(select(TAuctionHouseArtwork.artwork_id))).all()
            )
            new_ids = [artwork.id for artwork in artworks if artwork.id not in current_ids]
            await self._check_not_registered(session, new_ids)

            await session.execute(delete(TAuctionHouseArtwork))
            session.add_all(
                TAuctionHouseArtwork.create(position, artwork)
                for position, artwork in enumerate(artworks)
            )
            session.add_all(TArtworkIdRegistry(artwork_id=artwork_id) for artwork_id in new_ids)

    async def add_artworks_to_auction_house(self, artworks: list[Artwork]):
        """
        Appends the artworks to the auction house pool and registers them in the circulation registry.

        :raises DuplicateArtworkError: if the batch contains duplicates, or if an artwork was already admitted into
                                       circulation
        """
        if not artworks:
            return
        _check_batch_for_duplicates(artworks)
        async with self.session_factory.begin() as session:
            await self._check_not_registered(session, [artwork.id for artwork in artworks])

            # pylint: disable=not-callable
            max_position = await session.scalar(select(func.max(TAuctionHouseArtwork.position)))
            start = 0 if max_position is None else max_position + 1
            session.add_all(
                TAuctionHouseArtwork.create(start + i, artwork)
                for i, artwork in enumerate(artworks)
            )
            session.add_all(TArtworkIdRegistry(artwork_id=artwork.id) for artwork in artworks)

    async def get_all_auction_house_artworks(self) -> list[Artwork]:
        async with self.session_factory() as session:
            query = select(TAuctionHouseArtwork).order_by(TAuctionHouseArtwork.position)
            return [row.to_artwork() for row in await session.scalars(query)]

    async def update_auction_house_artwork_by_id(self, artwork: Artwork):
        async with self.session_factory.begin() as session:
            house_artwork = await session.get(TAuctionHouseArtwork, artwork.id)
            if house_artwork is None:
                raise ArtworkNotFoundError(artwork.id)
            house_artwork.artwork = artwork.to_dict()

    async def remove_artwork_from_auction_house_by_id(self, artwork_id: ArtworkId):
        async with self.session_factory.begin() as session:
            house_artwork = await session.get(TAuctionHouseArtwork, artwork_id)
            if house_artwork is None:
                raise ArtworkNotFoundError(artwork_id)
            await session.delete(house_artwork)

    async def remove_auction_house(self):
        """
        Removes the auction house pool. The circulation registry is kept.
        """
        async with self.session_factory.begin() as session:
            await session.execute(delete(TAuctionHouseArtwork))

    # circulation registry

    async def get_all_artwork_ids(self) -> list[ArtworkId]:
        async with self.session_factory() as session:
            query = select(TArtworkIdRegistry.artwork_id).order_by(TArtworkIdRegistry.artwork_id)
            return [ArtworkId(artwork_id) for artwork_id in await session.scalars(query)]

    async def remove_artwork_id_list(self):
        async with self.session_factory.begin() as session:
            await session.execute(delete(TArtworkIdRegistry))

    # helpers

    @staticmethod
    async def _get_player(session: AsyncSession, email: str) -> TPlayer:
        player = await session.get(TPlayer, email)
        if player is None:
            raise PlayerNotFoundError(email)
        return player

    @staticmethod
    async def _get_player_artwork(
        session: AsyncSession, email: str, artwork_id: ArtworkId
    ) -> TPlayerArtwork:
        player_artwork = await session.get(TPlayerArtwork, artwork_id)
        if player_artwork is None or player_artwork.player_email != email:
            raise ArtworkNotFoundError(artwork_id, email)
        return player_artwork

    @staticmethod
    async def _get_players_artwork(session: AsyncSession, email: str) -> list[Artwork]:
        query = (
            select(TPlayerArtwork)
            .where(TPlayerArtwork.player_email == email)
            .order_by(TPlayerArtwork.artwork_id)
        )
        return [row.to_artwork() for row in await session.scalars(query)]

    @staticmethod
    async def _sum_purchase_prices(session: AsyncSession, email: str) -> int:
        query = select(TPlayerArtwork).where(TPlayerArtwork.player_email == email)
        return sum(row.to_artwork().purchase_price for row in await session.scalars(query))

    @staticmethod
    async def _check_not_registered(session: AsyncSession, artwork_ids: list[ArtworkId]):
        if not artwork_ids:
            return
        registered = (
            await session.scalars(
                select(TArtworkIdRegistry.artwork_id).where(
                    TArtworkIdRegistry.artwork_id.in_(artwork_ids)
                )
            )
        ).all()
        if registered:
            raise DuplicateArtworkError(list(registered))
