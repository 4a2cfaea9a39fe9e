import unittest

from artauction.apps.auction_house.commands.replenish_artworks import (
    ReplenishAuctionHouseArtworks,
    ReplenishRequest,
)
from tests.apps.auction_house.test_support import (
    AuctionHouseTestCase,
    InMemoryArtworkSource,
    create_artwork,
    create_artworks,
)


class ReplenishAuctionHouseArtworksTestCase(AuctionHouseTestCase):
    async def test_replenish(self):
        source = InMemoryArtworkSource(create_artworks(10))
        replenish = ReplenishAuctionHouseArtworks(source, self.repository)

        admitted = await replenish(ReplenishRequest(batch_size=4))
        self.assertEqual([0, 1, 2, 3], [artwork.id for artwork in admitted])
        self.assertEqual(4, replenish.next_index)
        self.assertEqual(admitted, await self.repository.get_all_auction_house_artworks())
        self.assertEqual([0, 1, 2, 3], await self.repository.get_all_artwork_ids())

        with self.subTest("the next run continues where the previous one left off"):
            admitted = await replenish(ReplenishRequest(batch_size=4))
            self.assertEqual([4, 5, 6, 7], [artwork.id for artwork in admitted])
            self.assertEqual([(0, 4), (4, 8)], source.requested_ranges)

        with self.subTest("exhausted source admits nothing"):
            await replenish(ReplenishRequest(batch_size=4))
            admitted = await replenish(ReplenishRequest(batch_size=4))
            self.assertEqual([], admitted)
            self.assertEqual(10, len(await self.repository.get_all_auction_house_artworks()))

    async def test_artworks_are_filtered(self):
        invalid = create_artwork(1)
        invalid.primary_image = ""
        catalog = [
            create_artwork(0, title="Sunflowers"),
            invalid,
            create_artwork(2, title="Sunflowers"),
            create_artwork(3, is_being_auctioned=True),
            create_artwork(4),
        ]
        await self.repository.add_artworks_to_auction_house([create_artwork(4)])

        replenish = ReplenishAuctionHouseArtworks(InMemoryArtworkSource(catalog), self.repository)
        admitted = await replenish(ReplenishRequest(batch_size=5))

        # invalid artworks, duplicate titles and artworks already in circulation are dropped
        self.assertEqual([0, 3], [artwork.id for artwork in admitted])
        self.assertFalse(any(artwork.is_being_auctioned for artwork in admitted))

    async def test_keeps_fetching_until_min_count_is_admitted(self):
        catalog = create_artworks(6)
        await self.repository.add_artworks_to_auction_house(catalog[:4])

        source = InMemoryArtworkSource(catalog)
        replenish = ReplenishAuctionHouseArtworks(source, self.repository)
        admitted = await replenish(ReplenishRequest(batch_size=2, min_count=1))
        self.assertEqual([4, 5], [artwork.id for artwork in admitted])
        self.assertEqual([(0, 2), (2, 4), (4, 6)], source.requested_ranges)

        with self.subTest("fetches are bounded"):
            source = InMemoryArtworkSource(catalog)
            replenish = ReplenishAuctionHouseArtworks(source, self.repository)
            admitted = await replenish(ReplenishRequest(batch_size=1, max_fetches=3))
            self.assertEqual([], admitted)
            self.assertEqual(3, len(source.requested_ranges))

    async def test_invalid_request(self):
        replenish = ReplenishAuctionHouseArtworks(InMemoryArtworkSource([]), self.repository)
        with self.assertRaises(AssertionError):
            await replenish(ReplenishRequest(batch_size=0))


if __name__ == "__main__":
    unittest.main()
