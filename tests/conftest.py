"""
Pytest fixtures for the Aware API.

The SupplyChain contract is replaced by FakeContract, an in-memory stand-in
with the same async surface as ContractClient. Submissions go to a
spreadsheet under tmp_path.
"""

from __future__ import annotations

import pytest
from eth_account import Account

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class FakeContract:
    def __init__(self):
        self.ready = True
        self.contract_address = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
        self.users: dict[str, dict] = {}
        self.batches: dict[int, dict] = {}
        self.funded: list[str] = []
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None
        self._tx = 0
        self._clock = 1_700_000_000

    def _tx_hash(self) -> str:
        self._tx += 1
        return "0x" + f"{self._tx:064x}"

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def seed_user(self, username, password, role, address=None):
        """A user registered on chain outside this server (e.g. by the deploy script)."""
        self.users[username] = {
            "password": password,
            "address": address or Account.create().address,
            "role": role,
        }

    def _name_of(self, address):
        return next((u for u, v in self.users.items() if v["address"] == address), "")

    def _require_registered(self, wallet):
        if not self._name_of(wallet.address):
            raise RuntimeError("execution reverted: User not registered")

    # --- wallets ---
    @staticmethod
    def create_wallet():
        return Account.create()

    async def fund_wallet(self, address, amount_eth=1.0):
        self.funded.append(address)
        return self._tx_hash()

    async def get_eth_balance(self, address):
        return 1.0 if address in self.funded else 0.0

    # --- users ---
    async def register_user(self, wallet, username, password, role):
        self._maybe_fail()
        self.users[username] = {"password": password, "address": wallet.address, "role": role}
        return self._tx_hash()

    async def verify_login(self, username, password):
        user = self.users.get(username)
        if user is None or user["password"] != password:
            return False, ZERO_ADDRESS, "", 0
        return True, user["address"], username, user["role"]

    # --- batches ---
    async def create_batch(self, wallet, physical_asset, tracer, validation, compliance):
        self._maybe_fail()
        self._require_registered(wallet)
        batch_id = len(self.batches) + 1
        self._clock += 60
        name = self._name_of(wallet.address)
        self.batches[batch_id] = {
            "id": batch_id,
            "physicalAsset": dict(physical_asset),
            "tracer": dict(tracer),
            "validation": dict(validation),
            "compliance": dict(compliance),
            "createdBy": wallet.address,
            "createdByName": name,
            "createdByRole": self.users.get(name, {}).get("role", 0),
            "createdAt": self._clock,
            "status": 0,
            "approvedBy": ZERO_ADDRESS,
            "approvedByName": "",
            "approvedAt": 0,
            "rejectionReason": "",
            "certifiedBy": ZERO_ADDRESS,
            "certifiedByName": "",
            "certifiedAt": 0,
            "certificationHash": "",
        }
        self.calls.append(("createBatch", wallet.address, batch_id))
        return batch_id, self._tx_hash()

    async def list_batch_ids(self):
        self._maybe_fail()
        return list(self.batches)

    async def get_batch(self, batch_id):
        self._maybe_fail()
        return dict(self.batches[batch_id])

    async def list_batches(self):
        return [await self.get_batch(i) for i in await self.list_batch_ids()]

    async def approve_batch(self, wallet, batch_id):
        self._maybe_fail()
        self._require_registered(wallet)
        batch = self.batches[batch_id]
        batch.update(status=1, approvedBy=wallet.address, approvedByName=self._name_of(wallet.address))
        self.calls.append(("approveBatch", wallet.address, batch_id))
        return self._tx_hash()

    async def reject_batch(self, wallet, batch_id, reason):
        self._maybe_fail()
        self._require_registered(wallet)
        reason = reason or "No reason provided"
        self.batches[batch_id].update(status=2, rejectionReason=reason)
        self.calls.append(("rejectBatch", wallet.address, batch_id, reason))
        return self._tx_hash()

    async def certify_batch(self, wallet, batch_id, certification_hash):
        self._maybe_fail()
        self._require_registered(wallet)
        certification_hash = certification_hash or ""
        self.batches[batch_id].update(
            status=3,
            certifiedBy=wallet.address,
            certifiedByName=self._name_of(wallet.address),
            certificationHash=certification_hash,
        )
        self.calls.append(("certifyBatch", wallet.address, batch_id, certification_hash))
        return self._tx_hash()


@pytest.fixture
def fake_contract():
    return FakeContract()


@pytest.fixture
def storage(tmp_path):
    from app.storage.spreadsheet import SpreadsheetStorage

    return SpreadsheetStorage(tmp_path / "data" / "submissions.xlsx")


@pytest.fixture
def wallets():
    from app.wallets import WalletRegistry

    return WalletRegistry()


@pytest.fixture
def client(fake_contract, storage, wallets):
    """TestClient with the contract, wallet map and spreadsheet swapped for test doubles."""
    from fastapi.testclient import TestClient

    from app.auth.deps import get_contract, get_storage, get_wallets
    from app.main import app

    app.dependency_overrides[get_contract] = lambda: fake_contract
    app.dependency_overrides[get_wallets] = lambda: wallets
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Log in through the API and return bearer auth headers."""
    def _login(username, password="test123") -> dict:
        resp = client.post("/api/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return _login


@pytest.fixture
def producer(client, login_as):
    """Auth headers for producer1, registered through the API."""
    resp = client.post("/api/auth/register", json={"username": "producer1", "password": "test123", "role": 0})
    assert resp.status_code == 200, resp.text
    return login_as("producer1")


@pytest.fixture
def certifier(client, login_as):
    """Auth headers for certifier1, registered through the API so its server wallet signs on chain."""
    resp = client.post("/api/auth/register", json={"username": "certifier1", "password": "test123", "role": 3})
    assert resp.status_code == 200, resp.text
    return login_as("certifier1")
