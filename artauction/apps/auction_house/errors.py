"""
Auction house errors

Notes
-----
- NotFoundError and ConflictError abort the operation without partial state changes.
- Rejected bids are not errors. They are reported through `BidOutcome`.
- ResourceExhaustedError means pool replenishment failed and must be reported, never dropped.
"""
from dataclasses import dataclass

from artauction.apps.auction_house.domain.artwork import ArtworkId


class AuctionError(Exception):
    """
    Base class for auction house errors
    """


class NotFoundError(AuctionError):
    """
    No floor, player, or artwork with the given id
    """


class ConflictError(AuctionError):
    """
    The operation would duplicate an entity or ownership
    """


class InvalidOperationError(AuctionError):
    """
    The operation is not allowed in the current state
    """


class ResourceExhaustedError(AuctionError):
    """
    A required resource has run out
    """


@dataclass(eq=False)
class PlayerNotFoundError(NotFoundError):
    email: str

    def __str__(self) -> str:
        return f"user does not exist: {self.email}"


@dataclass(eq=False)
class ArtworkNotFoundError(NotFoundError):
    artwork_id: ArtworkId
    # None means the auction house collection
    owner: str | None = None

    def __str__(self) -> str:
        owner = self.owner if self.owner else "auction house"
        return f"no artwork with id: {self.artwork_id} [{owner}]"


@dataclass(eq=False)
class AuctionFloorNotFoundError(NotFoundError):
    floor_id: str

    def __str__(self) -> str:
        return f"no floor with id found: {self.floor_id}"


@dataclass(eq=False)
class PlayerAlreadyExistsError(ConflictError):
    email: str

    def __str__(self) -> str:
        return f"user with username already exists: {self.email}"


@dataclass(eq=False)
class PlayerAlreadyLoggedInError(ConflictError):
    email: str

    def __str__(self) -> str:
        return f"user is already logged in: {self.email}"


@dataclass(eq=False)
class DuplicateArtworkError(ConflictError):
    artwork_ids: list[ArtworkId]

    def __str__(self) -> str:
        return f"duplicate artwork added: {self.artwork_ids}"


@dataclass(eq=False)
class ArtworkAlreadyBeingAuctionedError(ConflictError):
    artwork_id: ArtworkId

    def __str__(self) -> str:
        return f"artwork is already being auctioned: {self.artwork_id}"


@dataclass(eq=False)
class PlayerDoesNotOwnArtworkError(InvalidOperationError):
    email: str
    artwork_id: ArtworkId

    def __str__(self) -> str:
        return f"player does not have artwork with id: {self.artwork_id} [{self.email}]"


@dataclass(eq=False)
class AuctionFloorStateError(InvalidOperationError):
    floor_id: str
    message: str

    def __str__(self) -> str:
        return f"[{self.floor_id}] {self.message}"


class NoArtworkLeftError(ResourceExhaustedError):
    """
    The house pool is exhausted and could not be replenished
    """

    def __str__(self) -> str:
        return "no artwork left in the auction house"
