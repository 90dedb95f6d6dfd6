# backend/app/auth/deps.py
from fastapi import Depends, HTTPException, Request, status

from app.blockchain_client import ContractClient
from app.storage.spreadsheet import SpreadsheetStorage
from app.wallets import UserWallet, WalletRegistry
from utils.jwt import verify_token


def get_contract(request: Request) -> ContractClient:
    return request.app.state.contract


def get_wallets(request: Request) -> WalletRegistry:
    return request.app.state.wallets


def get_storage(request: Request) -> SpreadsheetStorage:
    return request.app.state.storage


def require_blockchain(contract: ContractClient = Depends(get_contract)) -> ContractClient:
    """The contract client, or 503 while no deployment is loaded."""
    if not contract.ready:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Blockchain not ready")
    return contract


def get_user_wallet(
    user: dict = Depends(verify_token),
    wallets: WalletRegistry = Depends(get_wallets),
) -> UserWallet:
    wallet = wallets.get(user["username"])
    if wallet is None:
        raise HTTPException(status_code=500, detail="Wallet not found")
    return wallet
