import unittest

from artauction.apps.auction_house.domain.artwork import (
    Artwork,
    ArtworkId,
    ArtistInfo,
)
from tests.apps.auction_house.test_support import create_artwork


class ArtworkTestCase(unittest.TestCase):
    def test_validation(self):
        with self.subTest("artwork id must not be negative"):
            with self.assertRaises(ValueError):
                Artwork(id=ArtworkId(-1), title="Sunflowers", artist=ArtistInfo(name="Vincent van Gogh"))

        with self.subTest("title is required"):
            with self.assertRaises(ValueError):
                Artwork(id=ArtworkId(1), title="", artist=ArtistInfo(name="Vincent van Gogh"))

        with self.subTest("purchase price must not be negative"):
            with self.assertRaises(ValueError):
                create_artwork(1, purchase_price=-1)

        with self.subTest("artist must be ArtistInfo"):
            with self.assertRaises(ValueError):
                Artwork(id=ArtworkId(1), title="Sunflowers", artist="Vincent van Gogh")  # type: ignore

    def test_record_sale(self):
        artwork = create_artwork(1, purchase_price=100)
        artwork.record_sale(buyer="bob@example.org", price=500, seller="alice@example.org")
        artwork.record_sale(buyer="carol@example.org", price=700, seller="bob@example.org")

        self.assertEqual(700, artwork.purchase_price)
        self.assertEqual(
            ["bob@example.org", "carol@example.org"],
            [record.buyer for record in artwork.purchase_history],
        )
        self.assertEqual("bob@example.org", artwork.purchase_history[1].seller)
        self.assertLessEqual(artwork.purchase_history[0].timestamp, artwork.purchase_history[1].timestamp)

    def test_to_dict_from_dict(self):
        artwork = create_artwork(1, culture="Dutch", is_being_auctioned=True)
        artwork.record_sale(buyer="bob@example.org", price=500)

        data = artwork.to_dict()
        self.assertIsInstance(data["purchase_history"][0]["timestamp"], str)
        self.assertEqual("Artist #1", data["artist"]["name"])
        self.assertEqual(artwork, Artwork.from_dict(data))


if __name__ == "__main__":
    unittest.main()
