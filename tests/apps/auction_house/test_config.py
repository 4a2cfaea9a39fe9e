import logging
import os
import tempfile
import unittest
from datetime import timedelta

from artauction.apps.auction_house.config import AuctionHouseSettings
from artauction.apps.auction_house.domain.player import STARTING_BALANCE


class AuctionHouseSettingsTestCase(unittest.TestCase):
    def test_defaults(self):
        settings = AuctionHouseSettings()
        self.assertEqual(30, settings.auction_duration)
        self.assertEqual(timedelta(seconds=1), settings.tick_interval)
        self.assertEqual(0, settings.default_min_bid)
        self.assertEqual(STARTING_BALANCE, settings.starting_balance)
        self.assertEqual(0, settings.pool_offset)
        self.assertEqual(logging.WARNING, settings.log_level)

    def test_validation(self):
        with self.assertRaises(ValueError):
            AuctionHouseSettings(auction_duration=0)
        with self.assertRaises(ValueError):
            AuctionHouseSettings(tick_interval=timedelta(seconds=-1))
        with self.assertRaises(ValueError):
            AuctionHouseSettings(pool_offset=-1)
        with self.assertRaises(ValueError):
            AuctionHouseSettings(replenish_batch_size=0)

    def test_from_env(self):
        settings = AuctionHouseSettings.from_env(
            environ={
                "ARTAUCTION_AUCTION_DURATION": "10",
                "ARTAUCTION_TICK_INTERVAL_SECONDS": "0.5",
                "ARTAUCTION_DEFAULT_MIN_BID": "100",
                "ARTAUCTION_STARTING_BALANCE": "5000",
                "ARTAUCTION_POOL_OFFSET": "3",
                "ARTAUCTION_REPLENISH_BATCH_SIZE": "50",
                "ARTAUCTION_DATABASE_URL": "sqlite+aiosqlite://",
                "ARTAUCTION_LOG_LEVEL": "debug",
                "OTHER_VAR": "ignored",
            }
        )
        self.assertEqual(10, settings.auction_duration)
        self.assertEqual(timedelta(milliseconds=500), settings.tick_interval)
        self.assertEqual(100, settings.default_min_bid)
        self.assertEqual(5000, settings.starting_balance)
        self.assertEqual(3, settings.pool_offset)
        self.assertEqual(50, settings.replenish_batch_size)
        self.assertEqual("sqlite+aiosqlite://", settings.database_url)
        self.assertEqual(logging.DEBUG, settings.log_level)

        with self.subTest("invalid values are rejected"):
            with self.assertRaises(ValueError):
                AuctionHouseSettings.from_env(environ={"ARTAUCTION_AUCTION_DURATION": "0"})

    def test_from_dotenv_file(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            dotenv_path = os.path.join(tmp_dir, ".env")
            with open(dotenv_path, "w", encoding="utf-8") as f:
                f.write("ARTAUCTION_REPLENISH_BATCH_SIZE=42\n")
            try:
                settings = AuctionHouseSettings.from_env(dotenv_path=dotenv_path)
                self.assertEqual(42, settings.replenish_batch_size)
            finally:
                os.environ.pop("ARTAUCTION_REPLENISH_BATCH_SIZE", None)


if __name__ == "__main__":
    unittest.main()
