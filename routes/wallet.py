from fastapi import APIRouter, Depends, HTTPException
from web3 import Web3

from app.auth.deps import require_blockchain
from app.balances import accumulate_balances
from app.blockchain_client import ContractClient
from utils.jwt import verify_token
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


async def _balance_for(contract: ContractClient, address: str) -> dict:
    try:
        batches = await contract.list_batches()
        eth = await contract.get_eth_balance(address)
    except Exception as e:
        logger.error("wallet_balance_failed", address=address, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "address": address, "eth": eth, **accumulate_balances(batches, address)}


@router.get("/balance")
async def my_balance(
    contract: ContractClient = Depends(require_blockchain),
    user=Depends(verify_token),
):
    """Balances of the logged-in user's on-chain address."""
    return await _balance_for(contract, user["address"])


@router.get("/{address}/balance")
async def address_balance(address: str, contract: ContractClient = Depends(require_blockchain)):
    if not Web3.is_address(address):
        raise HTTPException(status_code=400, detail=f"Invalid address: {address}")
    return await _balance_for(contract, address)
