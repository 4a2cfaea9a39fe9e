"""
External artwork source used to top up the auction house pool
"""
from abc import ABC, abstractmethod

from artauction.apps.auction_house.domain.artwork import Artwork


def is_valid_artwork(artwork: Artwork | None) -> bool:
    """
    An artwork is valid when it has an image, department, title, medium, artist name and description.
    """
    if artwork is None:
        return False

    return all(
        (
            artwork.primary_image,
            artwork.department,
            artwork.title,
            artwork.medium,
            artwork.artist.name,
            artwork.description,
        )
    )


class ArtworkSource(ABC):
    """
    Source of artworks, e.g., a museum collection API.

    The catalog is indexed. Batches are requested by index range.
    """

    @abstractmethod
    async def fetch_next_batch(self, start: int, end: int) -> list[Artwork]:
        """
        :param start: inclusive catalog index
        :param end: exclusive catalog index
        :return: artworks in the range that pass `is_valid_artwork`. An empty list means the catalog is exhausted.
        """
