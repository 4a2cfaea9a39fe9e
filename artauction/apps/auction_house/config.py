"""
Auction house settings
"""
import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping, Self

from dotenv import load_dotenv

from artauction.apps.auction_house.domain.player import STARTING_BALANCE

ENV_PREFIX = "ARTAUCTION_"


@dataclass(slots=True)
class AuctionHouseSettings:
    """
    AuctionHouseSettings
    """

    # pylint: disable=too-many-instance-attributes

    # seconds each auction runs once started
    auction_duration: int = 30
    tick_interval: timedelta = field(default_factory=lambda: timedelta(seconds=1))

    default_min_bid: int = 0
    starting_balance: int = STARTING_BALANCE

    # where the house pool cursor starts
    pool_offset: int = 0
    replenish_batch_size: int = 20

    database_url: str = "sqlite+aiosqlite:///artauction.db"
    log_level: int = logging.WARNING

    def __post_init__(self):
        if self.auction_duration <= 0:
            raise ValueError("`auction_duration` must be greater than zero")
        if self.tick_interval < timedelta(0):
            raise ValueError("`tick_interval` must not be negative")
        if self.pool_offset < 0:
            raise ValueError("`pool_offset` must not be negative")
        if self.replenish_batch_size <= 0:
            raise ValueError("`replenish_batch_size` must be greater than zero")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        dotenv_path: str | None = None,
    ) -> Self:
        """
        Loads settings from `ARTAUCTION_*` environment variables.

        When `environ` is not specified, the `.env` file is loaded into the process environment first.
        Unset variables fall back to the defaults.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        def get(name: str) -> str | None:
            return environ.get(f"{ENV_PREFIX}{name}")

        settings = cls()
        if (value := get("AUCTION_DURATION")) is not None:
            settings.auction_duration = int(value)
        if (value := get("TICK_INTERVAL_SECONDS")) is not None:
            settings.tick_interval = timedelta(seconds=float(value))
        if (value := get("DEFAULT_MIN_BID")) is not None:
            settings.default_min_bid = int(value)
        if (value := get("STARTING_BALANCE")) is not None:
            settings.starting_balance = int(value)
        if (value := get("POOL_OFFSET")) is not None:
            settings.pool_offset = int(value)
        if (value := get("REPLENISH_BATCH_SIZE")) is not None:
            settings.replenish_batch_size = int(value)
        if (value := get("DATABASE_URL")) is not None:
            settings.database_url = value
        if (value := get("LOG_LEVEL")) is not None:
            settings.log_level = logging.getLevelName(value.upper())
        settings.__post_init__()
        return settings
