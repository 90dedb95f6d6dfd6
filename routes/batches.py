# app/routes/batches.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.auth.deps import get_user_wallet, require_blockchain
from app.blockchain_client import ContractClient
from app.lifecycle import BatchStatus, check_transition
from app.models.batch import (
    SORT_OPTIONS,
    BatchCreate,
    CertifyRequest,
    RejectRequest,
    batch_helper,
    filter_batches,
    filter_by_status,
    sort_batches,
)
from app.wallets import UserWallet
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/batches", tags=["batches"])


@router.post("/create")
async def create_batch_endpoint(
    batch: BatchCreate,
    contract: ContractClient = Depends(require_blockchain),
    wallet: UserWallet = Depends(get_user_wallet),
):
    try:
        batch_id, tx_hash = await contract.create_batch(
            wallet.account,
            batch.physicalAsset.model_dump(),
            batch.tracer.model_dump(),
            batch.validation.model_dump(),
            batch.compliance.model_dump(),
        )
    except Exception as e:
        logger.error("create_batch_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "batchId": batch_id, "transactionHash": tx_hash}


@router.get("")
async def list_batches_endpoint(
    search: Optional[str] = None,
    status: Optional[int] = Query(None, ge=0, le=3),
    sort: Optional[str] = Query(None, description=f"One of {', '.join(SORT_OPTIONS)}"),
    contract: ContractClient = Depends(require_blockchain),
):
    try:
        batches = [batch_helper(b) for b in await contract.list_batches()]
    except Exception as e:
        logger.error("list_batches_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    batches = sort_batches(filter_by_status(filter_batches(batches, search), status), sort)
    return {"success": True, "batches": batches}


async def _load_batch(contract: ContractClient, batch_id: int) -> dict:
    try:
        known = await contract.list_batch_ids()
        if batch_id not in known:
            raise HTTPException(status_code=404, detail=f"Batch {batch_id} not found")
        return batch_helper(await contract.get_batch(batch_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("get_batch_failed", batch_id=batch_id, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{batch_id}")
async def get_batch_endpoint(batch_id: int, contract: ContractClient = Depends(require_blockchain)):
    return {"success": True, "batch": await _load_batch(contract, batch_id)}


async def _transition(contract: ContractClient, batch_id: int, action: str) -> None:
    """409 when the batch's current status does not allow `action`."""
    batch = await _load_batch(contract, batch_id)
    try:
        check_transition(batch["status"], action)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{batch_id}/approve")
async def approve_batch(
    batch_id: int,
    contract: ContractClient = Depends(require_blockchain),
    wallet: UserWallet = Depends(get_user_wallet),
):
    await _transition(contract, batch_id, "approve")
    try:
        tx_hash = await contract.approve_batch(wallet.account, batch_id)
    except Exception as e:
        logger.error("approve_batch_failed", batch_id=batch_id, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "transactionHash": tx_hash, "status": BatchStatus.APPROVED.label}


@router.post("/{batch_id}/reject")
async def reject_batch(
    batch_id: int,
    data: Optional[RejectRequest] = None,
    contract: ContractClient = Depends(require_blockchain),
    wallet: UserWallet = Depends(get_user_wallet),
):
    await _transition(contract, batch_id, "reject")
    try:
        tx_hash = await contract.reject_batch(wallet.account, batch_id, data.reason if data else None)
    except Exception as e:
        logger.error("reject_batch_failed", batch_id=batch_id, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "transactionHash": tx_hash, "status": BatchStatus.REJECTED.label}


@router.post("/{batch_id}/certify")
async def certify_batch(
    batch_id: int,
    data: Optional[CertifyRequest] = None,
    contract: ContractClient = Depends(require_blockchain),
    wallet: UserWallet = Depends(get_user_wallet),
):
    await _transition(contract, batch_id, "certify")
    try:
        tx_hash = await contract.certify_batch(
            wallet.account, batch_id, data.certificationHash if data else None
        )
    except Exception as e:
        logger.error("certify_batch_failed", batch_id=batch_id, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "transactionHash": tx_hash, "status": BatchStatus.CERTIFIED.label}
