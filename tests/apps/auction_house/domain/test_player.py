import unittest

from artauction.apps.auction_house.domain.player import (
    STARTING_BALANCE,
    PlayerAccount,
)
from artauction.apps.auction_house.errors import DuplicateArtworkError
from tests.apps.auction_house.test_support import create_artwork


class PlayerAccountTestCase(unittest.TestCase):
    def test_new_player(self):
        player = PlayerAccount(email="alice@example.org")
        self.assertEqual(STARTING_BALANCE, player.money)
        self.assertEqual(STARTING_BALANCE, player.net_worth)
        self.assertEqual([], player.artworks)
        self.assertTrue(player.id)

        with self.subTest("email is required"):
            with self.assertRaises(ValueError):
                PlayerAccount(email="")

    def test_players_are_compared_by_identity(self):
        alice = PlayerAccount(email="alice@example.org")
        alice_2 = PlayerAccount(email="alice@example.org")
        self.assertNotEqual(alice, alice_2)
        self.assertNotEqual(alice.id, alice_2.id)

    def test_artworks(self):
        player = PlayerAccount(email="alice@example.org")
        artwork = create_artwork(1, purchase_price=250)

        player.add_artwork(artwork)
        self.assertTrue(player.has_artwork(artwork.id))
        self.assertIs(artwork, player.get_artwork(artwork.id))
        self.assertEqual(STARTING_BALANCE + 250, player.net_worth)

        with self.subTest("an artwork cannot be added twice"):
            with self.assertRaises(DuplicateArtworkError) as err:
                player.add_artwork(create_artwork(1))
            self.assertEqual([artwork.id], err.exception.artwork_ids)

        self.assertIs(artwork, player.remove_artwork(artwork.id))
        self.assertIsNone(player.remove_artwork(artwork.id))
        self.assertIsNone(player.get_artwork(artwork.id))
        self.assertEqual(STARTING_BALANCE, player.net_worth)

    def test_credit_debit(self):
        player = PlayerAccount(email="alice@example.org")
        player.add_artwork(create_artwork(1, purchase_price=100))

        player.credit(500)
        self.assertEqual(STARTING_BALANCE + 500, player.money)
        self.assertEqual(STARTING_BALANCE + 600, player.net_worth)

        player.debit(1500)
        self.assertEqual(STARTING_BALANCE - 1000, player.money)
        self.assertEqual(STARTING_BALANCE - 900, player.net_worth)

    def test_to_model(self):
        player = PlayerAccount(email="alice@example.org")
        player.add_artwork(create_artwork(1))
        model = player.to_model()
        self.assertEqual(player.id, model.id)
        self.assertEqual("alice@example.org", model.email)
        self.assertEqual([1], [artwork.id for artwork in model.artworks])


if __name__ == "__main__":
    unittest.main()
