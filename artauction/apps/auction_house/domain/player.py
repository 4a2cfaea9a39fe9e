"""
Player account domain model
"""
from dataclasses import dataclass, field

from ulid import ULID

from artauction.apps.auction_house.domain.artwork import Artwork, ArtworkId
from artauction.apps.auction_house.errors import DuplicateArtworkError

STARTING_BALANCE = 1_000_000


@dataclass(slots=True)
class Wallet:
    """
    Player funds and owned artworks
    """

    money: int = STARTING_BALANCE
    net_worth: int = STARTING_BALANCE
    artworks: dict[ArtworkId, Artwork] = field(default_factory=dict)


@dataclass(slots=True)
class PlayerModel:
    """
    Player projection that is handed to the area broadcast channel
    """

    id: str
    email: str
    money: int
    net_worth: int
    artworks: list[Artwork]


@dataclass(eq=False)
class PlayerAccount:
    """
    In-memory representation of a connected player's auction account.

    Bids do not touch the wallet. Money and artworks only move during auction settlement.

    Players are compared by identity, which lets them be tracked in auction floor membership sets.
    """

    email: str
    wallet: Wallet = field(default_factory=Wallet)
    id: str = field(default_factory=lambda: str(ULID()))

    def __post_init__(self):
        if not self.email:
            raise ValueError("email is required")

    @property
    def money(self) -> int:
        return self.wallet.money

    @property
    def net_worth(self) -> int:
        return self.wallet.net_worth

    @property
    def artworks(self) -> list[Artwork]:
        return list(self.wallet.artworks.values())

    def get_artwork(self, artwork_id: ArtworkId) -> Artwork | None:
        return self.wallet.artworks.get(artwork_id)

    def has_artwork(self, artwork_id: ArtworkId) -> bool:
        return artwork_id in self.wallet.artworks

    def add_artwork(self, artwork: Artwork):
        """
        :raises DuplicateArtworkError: if the player already owns an artwork with the same id
        """
        if artwork.id in self.wallet.artworks:
            raise DuplicateArtworkError([artwork.id])
        self.wallet.artworks[artwork.id] = artwork
        self.calculate_net_worth()

    def remove_artwork(self, artwork_id: ArtworkId) -> Artwork | None:
        """
        :return: the removed artwork, or None if the player did not own it
        """
        artwork = self.wallet.artworks.pop(artwork_id, None)
        self.calculate_net_worth()
        return artwork

    def credit(self, amount: int):
        self.wallet.money += amount
        self.calculate_net_worth()

    def debit(self, amount: int):
        self.wallet.money -= amount
        self.calculate_net_worth()

    def calculate_net_worth(self) -> int:
        """
        Net worth is money plus the purchase price of each owned artwork.
        """
        self.wallet.net_worth = self.wallet.money + sum(
            artwork.purchase_price for artwork in self.wallet.artworks.values()
        )
        return self.wallet.net_worth

    def to_model(self) -> PlayerModel:
        return PlayerModel(
            id=self.id,
            email=self.email,
            money=self.wallet.money,
            net_worth=self.wallet.net_worth,
            artworks=self.artworks,
        )
