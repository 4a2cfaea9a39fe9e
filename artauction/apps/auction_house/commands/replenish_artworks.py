"""
Tops up the auction house pool from the external artwork source
"""
from dataclasses import dataclass

from artauction.apps.auction_house.catalog.artwork_source import (
    ArtworkSource,
    is_valid_artwork,
)
from artauction.apps.auction_house.data.artwork_repository import ArtworkRepository
from artauction.apps.auction_house.domain.artwork import Artwork
from artauction.core.command import AsyncCommand


@dataclass(slots=True)
class ReplenishRequest:
    """
    ReplenishRequest
    """

    # catalog range size per fetch
    batch_size: int = 20

    # stop fetching once this many new artworks have been admitted
    min_count: int = 1

    # upper bound on source fetches per request
    max_fetches: int = 5


class ReplenishAuctionHouseArtworks(AsyncCommand[ReplenishRequest, list[Artwork]]):
    """
    Fetches artworks from the source and admits the new ones into the auction house pool.

    Artworks are dropped when they are invalid, when their id is in the circulation registry, or when their
    title was already seen in the same request. Running the command repeatedly never admits the same artwork
    id twice.

    Returns the artworks that were added to the durable auction house collection.
    """

    def __init__(self, source: ArtworkSource, repository: ArtworkRepository):
        self._source = source
        self._repository = repository
        # next catalog index to fetch from
        self._next_index = 0
        self._logger = super().get_logger()

    @property
    def next_index(self) -> int:
        return self._next_index

    async def __call__(self, request: ReplenishRequest) -> list[Artwork]:
        if request.batch_size <= 0:
            raise AssertionError("`batch_size` must be greater than zero")

        registered = set(await self._repository.get_all_artwork_ids())
        titles: set[str] = set()
        admitted: list[Artwork] = []

        for _ in range(request.max_fetches):
            start = self._next_index
            end = start + request.batch_size
            batch = await self._source.fetch_next_batch(start, end)
            self._next_index = end
            self._logger.info("fetched catalog range [%s, %s): count = %s", start, end, len(batch))
            if not batch:
                break

            for artwork in batch:
                if (
                    not is_valid_artwork(artwork)
                    or artwork.id in registered
                    or artwork.title in titles
                ):
                    continue
                artwork.is_being_auctioned = False
                registered.add(artwork.id)
                titles.add(artwork.title)
                admitted.append(artwork)

            if len(admitted) >= request.min_count:
                break

        await self._repository.add_artworks_to_auction_house(admitted)
        self._logger.info("admitted %s artworks into the auction house", len(admitted))
        return admitted
