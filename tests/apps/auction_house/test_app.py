import unittest

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from artauction.apps.auction_house.app import App
from artauction.apps.auction_house.domain.auction_house import BidOutcome
from artauction.core.async_service import ServiceLifecycleState
from tests.apps.auction_house.test_support import (
    AuctionHouseTestCase,
    InMemoryArtworkSource,
    create_artworks,
)
from tests.test_support import ArtAuctionIsolatedAsyncioTestCase


class AppTestCase(ArtAuctionIsolatedAsyncioTestCase):
    async def test_app(self):
        app = App(
            AuctionHouseTestCase.settings(auction_duration=2, replenish_batch_size=5),
            artwork_source=InMemoryArtworkSource(create_artworks(5)),
            engine=create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool),
        )
        await app.start()
        await app.await_running()
        self.assertEqual(ServiceLifecycleState.RUNNING, app.auction_house.state)

        alice = await app.player_accounts.create_account("alice@example.org")
        floor = await app.auction_house.create_new_auction_floor_non_player()
        self.assertEqual(0, floor.artwork.id)
        # the empty pool was replenished from the artwork source
        self.assertEqual(5, len(app.auction_house.artwork_pool))

        self.assertEqual(BidOutcome.ACCEPTED, app.auction_house.make_bid(alice, floor.id, 100))
        app.auction_house.start_auction_floor(floor.id)
        await floor.await_ended()
        self.assertTrue(alice.has_artwork(0))
        self.assertEqual(1, floor.artwork.id)
        await app.player_accounts.logout(alice)

        await app.stop()
        self.assertEqual(ServiceLifecycleState.STOPPED, app.auction_house.state)
        self.assertTrue(app.stopped)


if __name__ == "__main__":
    unittest.main()
