# backend/app/blockchain_client.py
"""
Client for the SupplyChain contract running on a local JSON-RPC node.

The contract owns users, batches and the batch state machine; this module only
loads the deployment, signs transactions with the per-user wallets the server
holds in memory and reshapes the getter results into plain dicts.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from app import config
from utils.logger import get_logger

logger = get_logger(__name__)


class BlockchainNotReady(RuntimeError):
    pass


class ContractClient:
    def __init__(
        self,
        rpc_url: str = config.RPC_URL,
        deployment_path: Path = config.DEPLOYMENT_PATH,
        abi_path: Path = config.CONTRACT_ABI_PATH,
    ):
        self.rpc_url = rpc_url
        self.deployment_path = Path(deployment_path)
        self.abi_path = Path(abi_path)
        self.w3: Optional[AsyncWeb3] = None
        self.contract = None
        self.contract_address: Optional[str] = None
        self.abi: List[dict] = []
        self.ready = False

    # ==============================
    # Setup
    # ==============================

    async def load(self) -> bool:
        """Load deployment.json and the ABI; stay not-ready when either is missing."""
        if not self.deployment_path.exists() or not self.abi_path.exists():
            logger.warning(
                "contract_not_deployed",
                deployment_path=str(self.deployment_path),
                abi_path=str(self.abi_path),
            )
            self.ready = False
            return False

        try:
            deployment = json.loads(self.deployment_path.read_text(encoding="utf-8"))
            artifact = json.loads(self.abi_path.read_text(encoding="utf-8"))
            self.abi = artifact["abi"] if isinstance(artifact, dict) else artifact
            self.contract_address = Web3.to_checksum_address(deployment["contractAddress"])

            self.w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
            if not await self.w3.is_connected():
                raise ConnectionError(f"JSON-RPC node unreachable at {self.rpc_url}")
            self.contract = self.w3.eth.contract(address=self.contract_address, abi=self.abi)
        except Exception as e:
            logger.error("contract_load_failed", error=str(e))
            self.ready = False
            return False

        logger.info("contract_loaded", contract_address=self.contract_address, rpc_url=self.rpc_url)
        self.ready = True
        return True

    def _require_ready(self):
        if not self.ready or self.contract is None:
            raise BlockchainNotReady("Blockchain not ready")

    # ==============================
    # Wallets
    # ==============================

    @staticmethod
    def create_wallet() -> LocalAccount:
        return Account.create()

    async def fund_wallet(self, address: str, amount_eth: float = config.FUND_AMOUNT_ETH) -> str:
        """Send gas money from the node's first unlocked account."""
        self._require_ready()
        accounts = await self.w3.eth.accounts
        tx_hash = await self.w3.eth.send_transaction({
            "from": accounts[0],
            "to": address,
            "value": Web3.to_wei(amount_eth, "ether"),
        })
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=config.TX_TIMEOUT_SECONDS)
        logger.info("wallet_funded", address=address, amount_eth=amount_eth)
        return Web3.to_hex(receipt["transactionHash"])

    async def get_eth_balance(self, address: str) -> float:
        self._require_ready()
        wei = await self.w3.eth.get_balance(Web3.to_checksum_address(address))
        return float(Web3.from_wei(wei, "ether"))

    # ==============================
    # Transactions
    # ==============================

    async def _transact(self, wallet: LocalAccount, fn) -> dict:
        """Build, sign and send a contract call from `wallet`; return the receipt."""
        self._require_ready()
        tx = await fn.build_transaction({
            "from": wallet.address,
            "nonce": await self.w3.eth.get_transaction_count(wallet.address, "pending"),
            "chainId": await self.w3.eth.chain_id,
        })
        signed = wallet.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=config.TX_TIMEOUT_SECONDS)
        if receipt.get("status") == 0:
            raise RuntimeError(f"Transaction {Web3.to_hex(tx_hash)} reverted")
        return receipt

    async def register_user(self, wallet: LocalAccount, username: str, password: str, role: int) -> str:
        self._require_ready()
        receipt = await self._transact(wallet, self.contract.functions.registerUser(username, password, role))
        logger.info("user_registered", username=username, address=wallet.address, role=role)
        return Web3.to_hex(receipt["transactionHash"])

    async def create_batch(
        self,
        wallet: LocalAccount,
        physical_asset: dict,
        tracer: dict,
        validation: dict,
        compliance: dict,
    ) -> Tuple[int, str]:
        self._require_ready()
        receipt = await self._transact(
            wallet,
            self.contract.functions.createBatch(
                self._struct_arg("createBatch", 0, physical_asset),
                self._struct_arg("createBatch", 1, tracer),
                self._struct_arg("createBatch", 2, validation),
                self._struct_arg("createBatch", 3, compliance),
            ),
        )

        batch_id = 0
        events = self.contract.events.BatchCreated().process_receipt(receipt)
        if events:
            batch_id = int(list(events[0]["args"].values())[0])

        tx_hash = Web3.to_hex(receipt["transactionHash"])
        logger.info("batch_created", batch_id=batch_id, tx_hash=tx_hash, creator=wallet.address)
        return batch_id, tx_hash

    async def approve_batch(self, wallet: LocalAccount, batch_id: int) -> str:
        self._require_ready()
        receipt = await self._transact(wallet, self.contract.functions.approveBatch(batch_id))
        logger.info("batch_approved", batch_id=batch_id, by=wallet.address)
        return Web3.to_hex(receipt["transactionHash"])

    async def reject_batch(self, wallet: LocalAccount, batch_id: int, reason: Optional[str]) -> str:
        self._require_ready()
        receipt = await self._transact(
            wallet, self.contract.functions.rejectBatch(batch_id, reason or "No reason provided")
        )
        logger.info("batch_rejected", batch_id=batch_id, by=wallet.address)
        return Web3.to_hex(receipt["transactionHash"])

    async def certify_batch(self, wallet: LocalAccount, batch_id: int, certification_hash: Optional[str]) -> str:
        self._require_ready()
        receipt = await self._transact(
            wallet, self.contract.functions.certifyBatch(batch_id, certification_hash or "")
        )
        logger.info("batch_certified", batch_id=batch_id, by=wallet.address)
        return Web3.to_hex(receipt["transactionHash"])

    # ==============================
    # Reads
    # ==============================

    async def verify_login(self, username: str, password: str) -> Tuple[bool, str, str, int]:
        self._require_ready()
        success, address, returned_username, role = await self.contract.functions.verifyLogin(
            username, password
        ).call()
        return bool(success), str(address), returned_username, int(role)

    async def list_batch_ids(self) -> List[int]:
        self._require_ready()
        return [int(i) for i in await self.contract.functions.getAllBatchIds().call()]

    async def get_batch(self, batch_id: int) -> Dict[str, Any]:
        self._require_ready()
        fns = self.contract.functions
        basic = await fns.getBatchBasicInfo(batch_id).call()
        physical = await fns.getBatchPhysicalAsset(batch_id).call()
        tracer = await fns.getBatchTracer(batch_id).call()
        validation = await fns.getBatchValidation(batch_id).call()
        compliance = await fns.getBatchCompliance(batch_id).call()
        approval = await fns.getBatchApprovalInfo(batch_id).call()

        return {
            "id": batch_id,
            "physicalAsset": self._struct_result("getBatchPhysicalAsset", physical),
            "tracer": self._struct_result("getBatchTracer", tracer),
            "validation": self._struct_result("getBatchValidation", validation),
            "compliance": self._struct_result("getBatchCompliance", compliance),
            "createdBy": basic[1],
            "createdByName": basic[2],
            "createdByRole": int(basic[3]),
            "createdAt": int(basic[4]),
            "status": int(basic[5]),
            "approvedBy": approval[0],
            "approvedByName": approval[1],
            "approvedAt": int(approval[2]),
            "rejectionReason": approval[3],
            "certifiedBy": approval[4],
            "certifiedByName": approval[5],
            "certifiedAt": int(approval[6]),
            "certificationHash": approval[7],
        }

    async def list_batches(self) -> List[Dict[str, Any]]:
        return [await self.get_batch(batch_id) for batch_id in await self.list_batch_ids()]

    # ==============================
    # ABI helpers
    # ==============================

    def _abi_entry(self, name: str) -> dict:
        for entry in self.abi:
            if entry.get("type") == "function" and entry.get("name") == name:
                return entry
        raise KeyError(f"Function {name} not in contract ABI")

    def _struct_arg(self, fn_name: str, index: int, values: dict) -> tuple:
        """Order a dict by the struct components the ABI declares for input `index`."""
        components = self._abi_entry(fn_name)["inputs"][index].get("components", [])
        return tuple(values.get(c["name"], "") for c in components)

    def _struct_result(self, fn_name: str, result) -> Dict[str, Any]:
        """Name the fields of a getter that returns one struct (or several outputs)."""
        outputs = self._abi_entry(fn_name)["outputs"]
        if len(outputs) == 1 and outputs[0].get("components"):
            names = [c["name"] for c in outputs[0]["components"]]
        else:
            names = [o["name"] for o in outputs]
            if not isinstance(result, (list, tuple)):
                result = [result]
        return dict(zip(names, result))
