"""
Player data model
"""
from typing import Any, Self

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from artauction.apps.auction_house.data import Base
from artauction.apps.auction_house.domain.artwork import ArtworkId, Artwork


class TPlayer(Base):
    """
    Player database table model
    """

    __tablename__ = "player"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    money: Mapped[int] = mapped_column()
    net_worth: Mapped[int] = mapped_column()
    is_logged_in: Mapped[bool] = mapped_column(default=False)


class TPlayerArtwork(Base):
    """
    Artwork owned by a player.

    The artwork id is the primary key, which means an artwork can be owned by at most one player.
    """

    __tablename__ = "player_artwork"

    artwork_id: Mapped[ArtworkId] = mapped_column(primary_key=True, autoincrement=False)
    player_email: Mapped[str] = mapped_column(
        ForeignKey("player.email", ondelete="CASCADE"),
        index=True,
    )
    artwork: Mapped[dict[str, Any]] = mapped_column()

    @classmethod
    def create(cls, player_email: str, artwork: Artwork) -> Self:
        return cls(
            artwork_id=artwork.id,
            player_email=player_email,
            artwork=artwork.to_dict(),
        )

    def to_artwork(self) -> Artwork:
        return Artwork.from_dict(self.artwork)
