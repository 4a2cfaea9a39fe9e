import unittest

from artauction.apps.auction_house.domain.player import STARTING_BALANCE
from artauction.apps.auction_house.errors import (
    PlayerAlreadyExistsError,
    PlayerAlreadyLoggedInError,
    PlayerNotFoundError,
)
from artauction.apps.auction_house.services.player_accounts import PlayerAccounts
from tests.apps.auction_house.test_support import AuctionHouseTestCase, create_artwork


class PlayerAccountsTestCase(AuctionHouseTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.player_accounts = PlayerAccounts(self.repository)

    async def test_create_account(self):
        player = await self.player_accounts.create_account("alice@example.org")
        self.assertEqual("alice@example.org", player.email)
        self.assertEqual(STARTING_BALANCE, player.money)
        self.assertEqual(STARTING_BALANCE, player.net_worth)
        self.assertEqual([], player.artworks)
        self.assertTrue(await self.player_accounts.is_logged_in("alice@example.org"))

        with self.assertRaises(PlayerAlreadyExistsError):
            await self.player_accounts.create_account("alice@example.org")

        with self.subTest("starting balance is configurable"):
            player_accounts = PlayerAccounts(self.repository, starting_balance=500)
            player = await player_accounts.create_account("bob@example.org")
            self.assertEqual(500, player.money)
            self.assertEqual(500, (await self.repository.get_player("bob@example.org")).money)

    async def test_login_logout(self):
        player = await self.player_accounts.create_account("alice@example.org")
        player.debit(100)
        await self.player_accounts.logout(player)
        self.assertFalse(await self.player_accounts.is_logged_in("alice@example.org"))

        await self.repository.add_artworks_to_player("alice@example.org", [create_artwork(1, purchase_price=50)])

        player = await self.player_accounts.login("alice@example.org")
        self.assertEqual(STARTING_BALANCE - 100, player.money)
        self.assertEqual(STARTING_BALANCE - 50, player.net_worth)
        self.assertTrue(player.has_artwork(1))

        record = await self.repository.get_player("alice@example.org")
        self.assertTrue(record.is_logged_in)
        self.assertEqual(STARTING_BALANCE - 50, record.net_worth)

        with self.subTest("only one session can be logged in"):
            with self.assertRaises(PlayerAlreadyLoggedInError):
                await self.player_accounts.login("alice@example.org")

        with self.subTest("unknown player"):
            with self.assertRaises(PlayerNotFoundError):
                await self.player_accounts.login("bob@example.org")

    async def test_delete_account(self):
        await self.player_accounts.create_account("alice@example.org")
        await self.player_accounts.delete_account("alice@example.org")
        with self.assertRaises(PlayerNotFoundError):
            await self.repository.get_player("alice@example.org")
        with self.assertRaises(PlayerNotFoundError):
            await self.player_accounts.delete_account("alice@example.org")


if __name__ == "__main__":
    unittest.main()
