"""
Auction house data model
"""
from typing import Any, Self

from sqlalchemy.orm import Mapped, mapped_column

from artauction.apps.auction_house.data import Base
from artauction.apps.auction_house.domain.artwork import ArtworkId, Artwork


class TAuctionHouseArtwork(Base):
    """
    Artwork in the auction house pool that is available for house-owned auctions
    """

    __tablename__ = "auction_house_artwork"

    artwork_id: Mapped[ArtworkId] = mapped_column(primary_key=True, autoincrement=False)
    # pool ordering
    position: Mapped[int] = mapped_column(index=True)
    artwork: Mapped[dict[str, Any]] = mapped_column()

    @classmethod
    def create(cls, position: int, artwork: Artwork) -> Self:
        return cls(
            artwork_id=artwork.id,
            position=position,
            artwork=artwork.to_dict(),
        )

    def to_artwork(self) -> Artwork:
        return Artwork.from_dict(self.artwork)


class TArtworkIdRegistry(Base):
    """
    Circulation registry: every artwork id that was ever admitted into the auction house pool.

    Used to prevent the same artwork from being put into circulation twice.
    """

    __tablename__ = "artwork_id_registry"

    artwork_id: Mapped[ArtworkId] = mapped_column(primary_key=True, autoincrement=False)
