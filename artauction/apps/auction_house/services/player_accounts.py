"""
Player account lifecycle: sign up, log in, log out
"""
from artauction.apps.auction_house.data.artwork_repository import ArtworkRepository
from artauction.apps.auction_house.domain.player import (
    STARTING_BALANCE,
    PlayerAccount,
    Wallet,
)
from artauction.apps.auction_house.errors import PlayerAlreadyLoggedInError
from artauction.core.logging import get_logger


class PlayerAccounts:
    """
    Loads player accounts from the repository and writes them back.

    Only one session can be logged into an account at a time.
    """

    def __init__(self, repository: ArtworkRepository, starting_balance: int = STARTING_BALANCE):
        if starting_balance < 0:
            raise ValueError("`starting_balance` must not be negative")
        self._repository = repository
        self._starting_balance = starting_balance
        self._logger = get_logger(self)

    async def create_account(self, email: str) -> PlayerAccount:
        """
        Signs up a new player with the starting balance and no artworks. The new player is logged in.

        :raises PlayerAlreadyExistsError:
        """
        await self._repository.add_player(email, self._starting_balance)
        await self._repository.update_player(email, True, self._starting_balance, self._starting_balance)
        self._logger.info("account created: %s", email)
        return PlayerAccount(
            email=email,
            wallet=Wallet(money=self._starting_balance, net_worth=self._starting_balance),
        )

    async def login(self, email: str) -> PlayerAccount:
        """
        :raises PlayerNotFoundError:
        :raises PlayerAlreadyLoggedInError:
        """
        record = await self._repository.get_player(email)
        if record.is_logged_in:
            raise PlayerAlreadyLoggedInError(email)

        player = PlayerAccount(
            email=email,
            wallet=Wallet(
                money=record.money,
                net_worth=record.net_worth,
                artworks={artwork.id: artwork for artwork in record.artworks},
            ),
        )
        net_worth = player.calculate_net_worth()
        await self._repository.update_player(email, True, player.money, net_worth)
        self._logger.info("logged in: %s", email)
        return player

    async def logout(self, player: PlayerAccount):
        """
        :raises PlayerNotFoundError:
        """
        await self._repository.update_player(player.email, False, player.money, player.net_worth)
        self._logger.info("logged out: %s", player.email)

    async def is_logged_in(self, email: str) -> bool:
        """
        :raises PlayerNotFoundError:
        """
        return (await self._repository.get_player(email)).is_logged_in

    async def delete_account(self, email: str):
        """
        Removes the player and the player's artworks.

        :raises PlayerNotFoundError:
        """
        await self._repository.remove_player(email)
        self._logger.info("account deleted: %s", email)
