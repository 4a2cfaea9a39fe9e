"""
Auction floor: a single timed auction for one artwork
"""
import asyncio
from dataclasses import dataclass, replace
from datetime import timedelta
from enum import StrEnum
from typing import Callable, Awaitable

from reactivex import Observable, Subject
from ulid import ULID

from artauction.apps.auction_house.data.artwork_repository import ArtworkRepository
from artauction.apps.auction_house.domain.artwork import Artwork
from artauction.apps.auction_house.domain.player import PlayerAccount, PlayerModel
from artauction.apps.auction_house.errors import AuctionFloorStateError
from artauction.core.logging import get_logger

AUCTION_DURATION = 30

AuctionEndedHandler = Callable[["AuctionFloor"], Awaitable[None]]


class AuctionFloorStatus(StrEnum):
    """
    WAITING_TO_START -> IN_PROGRESS -> ENDED

    - ENDED is terminal for player-owned floors, which are deleted after settlement.
    - House-owned floors are reset back to WAITING_TO_START after settlement.
    """

    WAITING_TO_START = "WAITING_TO_START"
    IN_PROGRESS = "IN_PROGRESS"
    ENDED = "ENDED"


@dataclass(slots=True)
class Bid:
    """
    The highest accepted bid on a floor.

    Bids are provisional. The bidder's wallet is only debited at settlement.
    """

    player: PlayerAccount | None
    amount: int


@dataclass(slots=True)
class BidModel:
    player: PlayerModel | None
    amount: int


@dataclass(slots=True)
class AuctionFloorModel:
    """
    Auction floor projection that is handed to the area broadcast channel
    """

    # pylint: disable=too-many-instance-attributes

    id: str
    status: AuctionFloorStatus
    min_bid: int
    artwork: Artwork
    time_left: int
    current_bid: BidModel | None
    auctioneer: PlayerModel | None
    observers: list[PlayerModel]
    bidders: list[PlayerModel]


class AuctionFloor:
    """
    Runs an independent countdown for one artwork and settles the auction when the countdown reaches zero.

    The floor does not validate bids, membership, or ownership. That is the auction house's job.
    The floor notifies listeners through:
    - `time_decreased_observable`: publishes the remaining seconds after each tick
    - `on_auction_ended`: async handlers that are awaited after settlement, in registration order

    The countdown runs as an asyncio task owned by the floor. Ticks of the same floor never overlap, and the
    ended handlers run on the countdown task, i.e., a floor's settlement and the bookkeeping that follows are
    serialized.
    """

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        artwork: Artwork,
        repository: ArtworkRepository,
        min_bid: int = 0,
        auctioneer: PlayerAccount | None = None,
        auction_duration: int = AUCTION_DURATION,
        tick_interval: timedelta = timedelta(seconds=1),
        floor_id: str | None = None,
    ):
        """
        :param auctioneer: None means the floor is owned by the auction house
        """
        if auction_duration <= 0:
            raise ValueError("`auction_duration` must be greater than zero")

        self._id = floor_id if floor_id else str(ULID())
        self._status = AuctionFloorStatus.WAITING_TO_START
        self._artwork = artwork
        self._repository = repository
        self._min_bid = min_bid
        self._auctioneer = auctioneer
        self._auction_duration = auction_duration
        self._tick_interval = tick_interval
        self._time_left = auction_duration
        self._current_bid: Bid | None = None
        self._is_sold = False
        self._settlement_error: Exception | None = None
        self._observers: dict[str, PlayerAccount] = {}
        self._bidders: dict[str, PlayerAccount] = {}

        self._countdown_task: asyncio.Task | None = None
        self._time_decreased: Subject[int] = Subject()
        self._ended_handlers: list[AuctionEndedHandler] = []

        self._logger = get_logger(self, self._id)

    @property
    def id(self) -> str:
        return self._id

    @property
    def status(self) -> AuctionFloorStatus:
        return self._status

    @property
    def is_live(self) -> bool:
        """
        :return: True if the floor is WAITING_TO_START or IN_PROGRESS
        """
        return self._status != AuctionFloorStatus.ENDED

    @property
    def artwork(self) -> Artwork:
        return self._artwork

    @property
    def min_bid(self) -> int:
        return self._min_bid

    @property
    def auctioneer(self) -> PlayerAccount | None:
        return self._auctioneer

    @property
    def is_house_owned(self) -> bool:
        return self._auctioneer is None

    @property
    def auction_duration(self) -> int:
        return self._auction_duration

    @property
    def time_left(self) -> int:
        return self._time_left

    @property
    def current_bid(self) -> Bid | None:
        return self._current_bid

    @property
    def is_sold(self) -> bool:
        """
        :return: True once the winning bid has been settled
        """
        return self._is_sold

    @property
    def settlement_error(self) -> Exception | None:
        """
        :return: the error that failed the last settlement, which leaves ownership and wallets unchanged
        """
        return self._settlement_error

    @property
    def observers(self) -> list[PlayerAccount]:
        return list(self._observers.values())

    @property
    def bidders(self) -> list[PlayerAccount]:
        return list(self._bidders.values())

    @property
    def time_decreased_observable(self) -> Observable[int]:
        """
        Publishes the time left after each countdown tick
        """
        return self._time_decreased

    def on_auction_ended(self, handler: AuctionEndedHandler):
        """
        Registers a handler that is awaited after the auction has been settled
        """
        self._ended_handlers.append(handler)

    # bids and membership are mutated by the auction house

    def set_current_bid(self, bid: Bid | None):
        self._current_bid = bid

    def add_observer(self, player: PlayerAccount):
        self._bidders.pop(player.id, None)
        self._observers[player.id] = player

    def add_bidder(self, player: PlayerAccount):
        self._observers.pop(player.id, None)
        self._bidders[player.id] = player

    def remove_member(self, player: PlayerAccount):
        self._observers.pop(player.id, None)
        self._bidders.pop(player.id, None)

    def is_member(self, player: PlayerAccount) -> bool:
        return player.id in self._observers or player.id in self._bidders

    def reset(self, artwork: Artwork):
        """
        Prepares an ended floor for the next auction.

        :raises AuctionFloorStateError: if the auction has not ended
        """
        if self._status != AuctionFloorStatus.ENDED:
            raise AuctionFloorStateError(self._id, f"floor cannot be reset when status is: {self._status}")

        self._artwork = artwork
        self._artwork.is_being_auctioned = True
        self._status = AuctionFloorStatus.WAITING_TO_START
        self._time_left = self._auction_duration
        self._current_bid = None
        self._is_sold = False
        self._settlement_error = None
        self._observers.clear()
        self._bidders.clear()
        self._countdown_task = None
        self._logger.info("reset: artwork_id=%s", artwork.id)

    # lifecycle

    def start_auction(self):
        """
        Starts the countdown.

        :raises AuctionFloorStateError: if the floor is not WAITING_TO_START
        """
        if self._status != AuctionFloorStatus.WAITING_TO_START:
            raise AuctionFloorStateError(self._id, f"auction cannot be started when status is: {self._status}")

        self._status = AuctionFloorStatus.IN_PROGRESS
        self._countdown_task = asyncio.create_task(self._countdown(), name=f"AuctionFloor[{self._id}]")
        self._countdown_task.add_done_callback(self._on_countdown_done)
        self._logger.info("auction started: artwork_id=%s, time_left=%s", self._artwork.id, self._time_left)

    def stop_countdown(self):
        """
        Cancels the countdown.

        Once settlement has begun, the countdown is left to run to completion.
        A countdown never cancels itself.
        """
        task = self._countdown_task
        if task is None or task.done() or self._status == AuctionFloorStatus.ENDED:
            return
        if task is asyncio.current_task():
            return
        task.cancel()
        self._logger.info("countdown cancelled")

    async def await_ended(self):
        """
        Awaits the countdown, settlement and the auction ended handlers.

        Returns immediately if the auction was never started.
        """
        if self._countdown_task:
            await self._countdown_task

    def decrease_auction_time_left(self):
        """
        Decrements the time left and publishes it.

        Only the countdown calls this, apart from administrative overrides.
        """
        self._time_left -= 1
        self._time_decreased.on_next(self._time_left)

    async def _countdown(self):
        while self._time_left > 0:
            await asyncio.sleep(self._tick_interval.total_seconds())
            self.decrease_auction_time_left()
        await self.end_auction()

    def _on_countdown_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        if err := task.exception():
            self._logger.error("auction countdown failed: %s", err)

    async def end_auction(self):
        """
        Settles the auction and then notifies the auction ended handlers.

        If a bid was accepted:
        1. a player auctioneer gives up the artwork and is credited with the winning bid
        2. the winning bidder receives the artwork and is debited the winning bid
        3. the artwork is no longer being auctioned and its purchase price is the winning bid

        Without a bid, nothing moves.

        The sale is stored in one repository transaction before the players are updated in memory. If storing the
        sale fails, then nothing moves, the error is kept as `settlement_error` and raised after the handlers ran.
        The handlers always run.

        :raises AuctionFloorStateError: if the auction already ended
        """
        if self._status == AuctionFloorStatus.ENDED:
            raise AuctionFloorStateError(self._id, "auction already ended")

        self._status = AuctionFloorStatus.ENDED
        self._artwork.is_being_auctioned = False
        bid = self._current_bid

        try:
            if bid is not None and bid.player is not None:
                await self._settle(bid.player, bid.amount)
            else:
                self._logger.info("auction ended without a bid: artwork_id=%s", self._artwork.id)
        except Exception as err:
            self._settlement_error = err
            self._logger.error("settlement failed: artwork_id=%s: %s", self._artwork.id, err)
            raise
        finally:
            for handler in self._ended_handlers:
                await handler(self)

    async def _settle(self, winner: PlayerAccount, amount: int):
        auctioneer = self._auctioneer
        seller = auctioneer.email if auctioneer else None
        sold = replace(
            self._artwork,
            is_being_auctioned=False,
            purchase_history=list(self._artwork.purchase_history),
        )
        record = sold.record_sale(buyer=winner.email, price=amount, seller=seller)

        await self._repository.settle_sale(sold, amount, winner.email, seller)

        # stored: apply the sale in memory without suspending
        if auctioneer:
            auctioneer.remove_artwork(self._artwork.id)
            auctioneer.credit(amount)
        winner.add_artwork(sold)
        winner.debit(amount)
        self._artwork.add_purchase(record)
        self._is_sold = True

        self._logger.info(
            "auction settled: artwork_id=%s, winner=%s, amount=%s, seller=%s",
            self._artwork.id,
            winner.email,
            amount,
            seller,
        )

    def to_model(self) -> AuctionFloorModel:
        bid = self._current_bid
        return AuctionFloorModel(
            id=self._id,
            status=self._status,
            min_bid=self._min_bid,
            artwork=self._artwork,
            time_left=self._time_left,
            current_bid=BidModel(
                player=bid.player.to_model() if bid.player else None,
                amount=bid.amount,
            )
            if bid
            else None,
            auctioneer=self._auctioneer.to_model() if self._auctioneer else None,
            observers=[player.to_model() for player in self._observers.values()],
            bidders=[player.to_model() for player in self._bidders.values()],
        )
