"""
Auction house: owns the auction floors and the pool of artworks for house-owned auctions
"""
import asyncio
from dataclasses import dataclass
from enum import IntEnum, auto

from reactivex import Observable, Subject
from reactivex.abc import DisposableBase
from ulid import ULID

from artauction.apps.auction_house.commands.replenish_artworks import (
    ReplenishAuctionHouseArtworks,
    ReplenishRequest,
)
from artauction.apps.auction_house.config import AuctionHouseSettings
from artauction.apps.auction_house.data.artwork_repository import ArtworkRepository
from artauction.apps.auction_house.domain.artwork import Artwork, ArtworkId
from artauction.apps.auction_house.domain.auction_floor import (
    AuctionFloor,
    AuctionFloorModel,
    AuctionFloorStatus,
    Bid,
)
from artauction.apps.auction_house.domain.player import PlayerAccount
from artauction.apps.auction_house.errors import (
    AuctionFloorNotFoundError,
    AuctionFloorStateError,
    ArtworkAlreadyBeingAuctionedError,
    InvalidOperationError,
    NoArtworkLeftError,
    PlayerDoesNotOwnArtworkError,
)
from artauction.core.async_service import AsyncService

AUCTION_HOUSE_AREA_TYPE = "AuctionHouseArea"


class BidOutcome(IntEnum):
    """
    Result of a bid. Rejected bids leave the floor unchanged.
    """

    ACCEPTED = auto()
    # bid must exceed the floor's min bid
    BELOW_MIN_BID = auto()
    # bid must exceed the current bid
    NOT_HIGHEST_BID = auto()
    # auctioneers cannot bid on their own floor
    AUCTIONEER_BID = auto()
    # bid exceeds the bidder's money
    INSUFFICIENT_FUNDS = auto()
    # the auction has ended
    AUCTION_CLOSED = auto()


@dataclass(slots=True)
class AuctionHouseModel:
    """
    Auction house projection that is published on the area changed channel
    """

    id: str
    occupants: list[str]
    type: str
    floors: list[AuctionFloorModel]


class AuctionHouse(AsyncService):
    """
    Creates auction floors, admits bids and members, and performs the bookkeeping after each floor's auction ends.

    House-owned floors are recycled: after settlement the floor is reset with the next artwork from the pool.
    Player-owned floors are deleted after settlement.

    Invariant: the artworks flagged `is_being_auctioned` are exactly the artworks of the live floors, i.e.,
    floors that are WAITING_TO_START or IN_PROGRESS.

    All state changes happen on the event loop thread. Pool bookkeeping never spans a suspension point without
    re-validating the floor afterwards, because other floors' handlers may run while a repository call is awaited.

    Service lifecycle
    -----------------
    - start: loads the pool from the repository
    - stop: stops the countdown on every floor
    """

    # pylint: disable=too-many-instance-attributes,too-many-public-methods

    def __init__(
        self,
        repository: ArtworkRepository,
        settings: AuctionHouseSettings | None = None,
        replenish_artworks: ReplenishAuctionHouseArtworks | None = None,
        house_id: str | None = None,
    ):
        """
        :param replenish_artworks: used to top up the pool when it runs out. If None, then the pool must be
                                   replenished through `set_auction_house_artworks` or
                                   `add_artworks_to_auction_house`
        """
        super().__init__()
        self._id = house_id if house_id else str(ULID())
        self._repository = repository
        self._settings = settings if settings else AuctionHouseSettings()
        self._replenish_artworks = replenish_artworks
        self._replenish_lock = asyncio.Lock()

        self._auction_floors: list[AuctionFloor] = []
        self._floor_subscriptions: dict[str, DisposableBase] = {}
        self._artwork_pool: list[Artwork] = []
        # index of the next artwork in the pool to auction
        self._pool_cursor = 0
        self._occupants: dict[str, PlayerAccount] = {}

        self._area_changed: Subject[AuctionHouseModel] = Subject()
        self._errors: Subject[Exception] = Subject()

    @property
    def id(self) -> str:
        return self._id

    @property
    def settings(self) -> AuctionHouseSettings:
        return self._settings

    @property
    def auction_floors(self) -> list[AuctionFloor]:
        return list(self._auction_floors)

    @property
    def artwork_pool(self) -> list[Artwork]:
        return list(self._artwork_pool)

    @property
    def pool_cursor(self) -> int:
        return self._pool_cursor

    @property
    def occupants(self) -> list[PlayerAccount]:
        return list(self._occupants.values())

    @property
    def is_active(self) -> bool:
        return len(self._occupants) > 0

    @property
    def area_changed_observable(self) -> Observable[AuctionHouseModel]:
        """
        Publishes the auction house model after every floor or membership change, and after every floor tick
        """
        return self._area_changed

    @property
    def errors_observable(self) -> Observable[Exception]:
        """
        Publishes errors raised while resetting house-owned floors, e.g., `NoArtworkLeftError`
        """
        return self._errors

    # service lifecycle

    async def _start(self):
        pool = await self._repository.get_all_auction_house_artworks()
        # floors do not survive a restart
        for artwork in pool:
            if artwork.is_being_auctioned:
                artwork.is_being_auctioned = False
                await self._repository.update_auction_house_artwork_by_id(artwork)
        self._artwork_pool = pool
        self._pool_cursor = min(self._settings.pool_offset, len(pool))
        self._logger.info(
            "loaded auction house pool: size=%s, cursor=%s",
            len(self._artwork_pool),
            self._pool_cursor,
        )

    async def _stop(self):
        for floor in self._auction_floors:
            floor.stop_countdown()

    # pool

    async def set_auction_house_artworks(self, artworks: list[Artwork], offset: int = 0):
        """
        Replaces the pool used for house-owned auctions.

        :param offset: where the pool cursor starts
        :raises InvalidOperationError: if a house-owned floor is live
        :raises DuplicateArtworkError: if an artwork was already admitted into circulation
        """
        if not 0 <= offset <= len(artworks):
            raise ValueError(f"offset must be within [0, {len(artworks)}]: {offset}")
        if any(floor.is_house_owned and floor.is_live for floor in self._auction_floors):
            raise InvalidOperationError(
                "auction house artworks cannot be replaced while house-owned floors are live"
            )

        for artwork in artworks:
            artwork.is_being_auctioned = False
        await self._repository.set_auction_house_artworks(artworks)

        self._artwork_pool = list(artworks)
        self._pool_cursor = offset
        self._logger.info("auction house pool set: size=%s, cursor=%s", len(artworks), offset)
        self._emit_area_changed()

    async def add_artworks_to_auction_house(self, artworks: list[Artwork]):
        """
        Appends artworks to the pool.

        :raises DuplicateArtworkError: if an artwork was already admitted into circulation
        """
        for artwork in artworks:
            artwork.is_being_auctioned = False
        await self._repository.add_artworks_to_auction_house(artworks)
        self._artwork_pool.extend(artworks)

    async def replenish(self) -> list[Artwork]:
        """
        Tops up the pool from the artwork source.

        :return: artworks that were added to the pool
        """
        if self._replenish_artworks is None:
            return []

        async with self._replenish_lock:
            admitted = await self._replenish_artworks(
                ReplenishRequest(batch_size=self._settings.replenish_batch_size)
            )
        self._artwork_pool.extend(admitted)
        self._logger.info("pool replenished: admitted=%s, size=%s", len(admitted), len(self._artwork_pool))
        return admitted

    async def _take_next_pool_artwork(self) -> Artwork:
        if self._pool_cursor >= len(self._artwork_pool):
            await self.replenish()
        # another floor may have taken the replenished artworks while this one was suspended
        if self._pool_cursor >= len(self._artwork_pool):
            raise NoArtworkLeftError()

        artwork = self._artwork_pool[self._pool_cursor]
        self._pool_cursor += 1
        artwork.is_being_auctioned = True
        return artwork

    def _release_pool_artwork(self, artwork: Artwork):
        """
        Puts a taken artwork back in front of the pool cursor
        """
        artwork.is_being_auctioned = False
        index = self._pool_index(artwork.id)
        if index is None:
            return
        del self._artwork_pool[index]
        if index < self._pool_cursor:
            self._pool_cursor -= 1
        self._artwork_pool.insert(self._pool_cursor, artwork)

    def _remove_artwork_from_pool(self, artwork_id: ArtworkId) -> bool:
        index = self._pool_index(artwork_id)
        if index is None:
            return False
        del self._artwork_pool[index]
        if index < self._pool_cursor:
            self._pool_cursor -= 1
        return True

    def _pool_index(self, artwork_id: ArtworkId) -> int | None:
        for index, artwork in enumerate(self._artwork_pool):
            if artwork.id == artwork_id:
                return index
        return None

    # floors

    def get_auction_floor(self, floor_id: str) -> AuctionFloor:
        """
        :raises AuctionFloorNotFoundError:
        """
        for floor in self._auction_floors:
            if floor.id == floor_id:
                return floor
        raise AuctionFloorNotFoundError(floor_id)

    async def create_new_auction_floor_non_player(self, min_bid: int | None = None) -> AuctionFloor:
        """
        Creates a house-owned floor for the next artwork in the pool.

        :raises NoArtworkLeftError: if the pool is exhausted and could not be replenished
        """
        artwork = await self._take_next_pool_artwork()
        try:
            await self._repository.update_auction_house_artwork_by_id(artwork)
        except Exception:
            self._release_pool_artwork(artwork)
            raise

        floor = self._new_floor(artwork, min_bid)
        floor.on_auction_ended(self._on_house_floor_ended)
        self._add_floor(floor)
        return floor

    async def create_new_auction_floor_player(
        self,
        player: PlayerAccount,
        artwork: Artwork,
        min_bid: int | None = None,
    ) -> AuctionFloor:
        """
        Creates a floor where the player auctions off an artwork they own.

        The auctioneer joins the floor as an observer. Auctioneers cannot bid on their own floor.

        :raises PlayerDoesNotOwnArtworkError:
        :raises ArtworkAlreadyBeingAuctionedError:
        """
        owned = player.get_artwork(artwork.id)
        if owned is None:
            raise PlayerDoesNotOwnArtworkError(player.email, artwork.id)
        if owned.is_being_auctioned or any(
            floor.is_live and floor.artwork.id == owned.id for floor in self._auction_floors
        ):
            raise ArtworkAlreadyBeingAuctionedError(owned.id)

        owned.is_being_auctioned = True
        try:
            await self._repository.update_player_artwork_by_id(player.email, owned)
        except Exception:
            owned.is_being_auctioned = False
            raise

        floor = self._new_floor(owned, min_bid, auctioneer=player)
        floor.add_observer(player)
        floor.on_auction_ended(self._on_player_floor_ended)
        self._add_floor(floor)
        return floor

    def start_auction_floor(self, floor_id: str):
        """
        :raises AuctionFloorNotFoundError:
        :raises AuctionFloorStateError: if the floor is not WAITING_TO_START
        """
        self.get_auction_floor(floor_id).start_auction()
        self._emit_area_changed()

    async def reset_auction_floor(self, floor_id: str):
        """
        Prepares an ended house-owned floor for its next auction.

        If the artwork sold, then it is removed from the pool and the floor gets the next artwork. Otherwise, the
        floor keeps the same artwork, which includes a failed settlement.

        :raises AuctionFloorNotFoundError:
        :raises AuctionFloorStateError: if the floor has not ended or is player-owned
        :raises NoArtworkLeftError: if the artwork sold and the pool is exhausted. The floor is removed.
        """
        floor = self.get_auction_floor(floor_id)
        if floor.status != AuctionFloorStatus.ENDED:
            raise AuctionFloorStateError(floor_id, f"floor cannot be reset when status is: {floor.status}")
        if not floor.is_house_owned:
            raise AuctionFloorStateError(floor_id, "player-owned floors are deleted, not reset")

        sold_artwork = floor.artwork
        next_artwork = sold_artwork
        if floor.is_sold:
            # the pool row was removed with the sale
            self._remove_artwork_from_pool(sold_artwork.id)
            try:
                next_artwork = await self._take_next_pool_artwork()
            except NoArtworkLeftError:
                self._discard_floor(floor)
                self._emit_area_changed()
                raise

        if floor not in self._auction_floors:
            # deleted while suspended
            if next_artwork is not sold_artwork:
                self._release_pool_artwork(next_artwork)
            raise AuctionFloorNotFoundError(floor_id)

        floor.reset(next_artwork)
        await self._repository.update_auction_house_artwork_by_id(next_artwork)
        self._emit_area_changed()

    async def delete_auction_floor(self, floor_id: str):
        """
        Removes the floor and stops its countdown.

        If the floor's artwork did not sell, then it is no longer being auctioned:
        - player-owned floor: the artwork stays with the auctioneer
        - house-owned floor: the artwork is put back in the pool. A sold artwork is removed from the pool.

        :raises AuctionFloorNotFoundError:
        """
        floor = self.get_auction_floor(floor_id)
        self._discard_floor(floor)

        artwork = floor.artwork
        auctioneer = floor.auctioneer
        if auctioneer is not None:
            if auctioneer.has_artwork(artwork.id):
                artwork.is_being_auctioned = False
                await self._repository.update_player_artwork_by_id(auctioneer.email, artwork)
        elif floor.is_sold:
            # sold, but the floor was deleted before it was reset
            self._remove_artwork_from_pool(artwork.id)
        else:
            self._release_pool_artwork(artwork)
            await self._repository.update_auction_house_artwork_by_id(artwork)

        self._logger.info("floor deleted: floor_id=%s, artwork_id=%s", floor_id, artwork.id)
        self._emit_area_changed()

    def _new_floor(
        self,
        artwork: Artwork,
        min_bid: int | None,
        auctioneer: PlayerAccount | None = None,
    ) -> AuctionFloor:
        return AuctionFloor(
            artwork=artwork,
            repository=self._repository,
            min_bid=self._settings.default_min_bid if min_bid is None else min_bid,
            auctioneer=auctioneer,
            auction_duration=self._settings.auction_duration,
            tick_interval=self._settings.tick_interval,
        )

    def _add_floor(self, floor: AuctionFloor):
        self._floor_subscriptions[floor.id] = floor.time_decreased_observable.subscribe(
            lambda _time_left: self._emit_area_changed()
        )
        self._auction_floors.append(floor)
        self._logger.info(
            "floor created: floor_id=%s, artwork_id=%s, auctioneer=%s, min_bid=%s",
            floor.id,
            floor.artwork.id,
            floor.auctioneer.email if floor.auctioneer else None,
            floor.min_bid,
        )
        self._emit_area_changed()

    def _discard_floor(self, floor: AuctionFloor):
        self._auction_floors.remove(floor)
        floor.stop_countdown()
        subscription = self._floor_subscriptions.pop(floor.id, None)
        if subscription:
            subscription.dispose()

    def _report_settlement_error(self, floor: AuctionFloor):
        if floor.settlement_error is None:
            return
        self._logger.error(
            "settlement failed: floor_id=%s, artwork_id=%s: %s",
            floor.id,
            floor.artwork.id,
            floor.settlement_error,
        )
        self._errors.on_next(floor.settlement_error)

    async def _on_house_floor_ended(self, floor: AuctionFloor):
        self._report_settlement_error(floor)
        try:
            await self.reset_auction_floor(floor.id)
        except Exception as err:
            self._logger.error("failed to reset floor: floor_id=%s: %s", floor.id, err)
            self._errors.on_next(err)
            raise

    async def _on_player_floor_ended(self, floor: AuctionFloor):
        self._report_settlement_error(floor)
        try:
            await self.delete_auction_floor(floor.id)
        except Exception as err:
            self._logger.error("failed to delete floor: floor_id=%s: %s", floor.id, err)
            self._errors.on_next(err)
            raise

    # bids and membership

    def make_bid(self, player: PlayerAccount, floor_id: str, amount: int) -> BidOutcome:
        """
        Bids are checked in order:
        1. the auction must not have ended
        2. the bid must exceed the floor's min bid
        3. the bid must exceed the current bid
        4. the bidder must not be the floor's auctioneer
        5. the bid must not exceed the bidder's money

        Bids are not escrowed. Money only moves when the auction is settled.

        :raises AuctionFloorNotFoundError:
        """
        floor = self.get_auction_floor(floor_id)
        outcome = self._check_bid(floor, player, amount)
        if outcome == BidOutcome.ACCEPTED:
            floor.set_current_bid(Bid(player, amount))
            self._logger.debug("bid accepted: floor_id=%s, bidder=%s, amount=%s", floor_id, player.email, amount)
            self._emit_area_changed()
        else:
            self._logger.info(
                "bid rejected: floor_id=%s, bidder=%s, amount=%s, outcome=%s",
                floor_id,
                player.email,
                amount,
                outcome.name,
            )
        return outcome

    @staticmethod
    def _check_bid(floor: AuctionFloor, player: PlayerAccount, amount: int) -> BidOutcome:
        if not floor.is_live:
            return BidOutcome.AUCTION_CLOSED
        if amount <= floor.min_bid:
            return BidOutcome.BELOW_MIN_BID
        if floor.current_bid is not None and amount <= floor.current_bid.amount:
            return BidOutcome.NOT_HIGHEST_BID
        if floor.auctioneer is not None and floor.auctioneer.id == player.id:
            return BidOutcome.AUCTIONEER_BID
        if amount > player.money:
            return BidOutcome.INSUFFICIENT_FUNDS
        return BidOutcome.ACCEPTED

    def join_floor_as_observer(self, player: PlayerAccount, floor_id: str):
        """
        A player is either an observer or a bidder. Joining as an observer removes the player from the bidders.

        :raises AuctionFloorNotFoundError:
        """
        self.get_auction_floor(floor_id).add_observer(player)
        self._emit_area_changed()

    def join_floor_as_bidder(self, player: PlayerAccount, floor_id: str):
        """
        A player is either an observer or a bidder. Joining as a bidder removes the player from the observers.

        :raises AuctionFloorNotFoundError:
        """
        self.get_auction_floor(floor_id).add_bidder(player)
        self._emit_area_changed()

    async def leave_auction_floor(self, player: PlayerAccount, floor_id: str):
        """
        Removes the player from the floor's observers and bidders.

        - If the player holds the current bid, then the bid is cleared. There is no fallback to the previous bid.
        - If the player is the auctioneer, then the floor is deleted and the artwork is no longer being auctioned.

        Once the auction has ended, settlement owns the floor, and leaving only drops membership.

        :raises AuctionFloorNotFoundError:
        """
        floor = self.get_auction_floor(floor_id)
        floor.remove_member(player)
        if not floor.is_live:
            self._emit_area_changed()
            return

        bid = floor.current_bid
        if bid is not None and bid.player is not None and bid.player.id == player.id:
            floor.set_current_bid(None)
            self._logger.info("bid forfeited: floor_id=%s, bidder=%s", floor_id, player.email)

        if floor.auctioneer is not None and floor.auctioneer.id == player.id:
            await self.delete_auction_floor(floor_id)
        else:
            self._emit_area_changed()

    # interactable area

    def add_occupant(self, player: PlayerAccount):
        self._occupants[player.id] = player
        self._emit_area_changed()

    def remove_occupant(self, player: PlayerAccount):
        self._occupants.pop(player.id, None)
        self._emit_area_changed()

    def to_model(self) -> AuctionHouseModel:
        return AuctionHouseModel(
            id=self._id,
            occupants=list(self._occupants),
            type=AUCTION_HOUSE_AREA_TYPE,
            floors=[floor.to_model() for floor in self._auction_floors],
        )

    def _emit_area_changed(self):
        self._area_changed.on_next(self.to_model())
