# backend/app/wallets.py
from dataclasses import dataclass
from typing import Dict, Optional

from eth_account.signers.local import LocalAccount

from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class UserWallet:
    account: LocalAccount

    @property
    def address(self) -> str:
        return self.account.address


class WalletRegistry:
    """
    Server-held signing wallets, one per logged-in username.

    Kept in process memory only: a restart forgets every wallet and users get
    a freshly funded one on their next login.
    """

    def __init__(self):
        self._wallets: Dict[str, UserWallet] = {}

    def get(self, username: str) -> Optional[UserWallet]:
        return self._wallets.get(username)

    def put(self, username: str, account: LocalAccount) -> UserWallet:
        wallet = UserWallet(account=account)
        self._wallets[username] = wallet
        return wallet

    async def ensure(self, username: str, contract) -> UserWallet:
        """Return the user's wallet, creating and funding one when the server has none."""
        wallet = self.get(username)
        if wallet is not None:
            return wallet

        account = contract.create_wallet()
        await contract.fund_wallet(account.address)
        logger.info("server_wallet_created", username=username, address=account.address)
        return self.put(username, account)
