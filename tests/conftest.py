"""
Shared fixtures: an in-memory ledger standing in for the DAO, the forwarder
and the node behind them.
"""

import asyncio
import os
import sys
from dataclasses import replace
from typing import Dict, List, Optional

import pytest
from eth_account import Account
from eth_utils import to_checksum_address

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govrelay.config import RelayerConfig
from govrelay.crypto.typed_data import recover_forward_signer
from govrelay.exceptions import ContractRevertError
from govrelay.governance.proposals import Proposal
from govrelay.ledger.base import Ledger, Receipt, TxHandle

# Well-known local development keys (hardhat / anvil accounts #0 and #1)
RELAYER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
VOTER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
VOTER_ADDRESS = Account.from_key(VOTER_KEY).address

DAO_ADDRESS = to_checksum_address("0x5fbdb2315678afecb367f032d93f642f64180aa3")
FORWARDER_ADDRESS = to_checksum_address("0xe7f1725e7734ce288f8367e1bb143e90bb3f0512")
RECIPIENT = to_checksum_address("0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc")
CHAIN_ID = 31337

T = 1_700_000_000
DAY = 86_400


def make_proposal(pid: int, **overrides) -> Proposal:
    fields = dict(
        id=pid,
        proposer=VOTER_ADDRESS,
        recipient=RECIPIENT,
        amount=10 ** 18,
        deadline=T,
        votes_for=0,
        votes_against=0,
        votes_abstain=0,
        executed=False,
        created_at=T - 7 * DAY,
    )
    fields.update(overrides)
    return Proposal(**fields)


class FakeLedger(Ledger):
    """
    In-memory ledger.

    verify_forward behaves like MinimalForwarder.verify: the EIP-712 signer
    must be request.from and request.nonce must be the sender's next nonce.
    A mined forward consumes the nonce; a mined execution sets executed.
    """

    def __init__(self, proposals: Optional[List[Proposal]] = None, execution_delay: int = DAY):
        self.proposals: Dict[int, Proposal] = {p.id: p for p in (proposals or [])}
        self.execution_delay = execution_delay
        self.nonces: Dict[str, int] = {}
        self.chain_id = CHAIN_ID
        self.forwarder = FORWARDER_ADDRESS

        # failure injection
        self.count_error: Optional[Exception] = None
        self.delay_error: Optional[Exception] = None
        self.chain_error: Optional[Exception] = None
        self.read_errors: Dict[int, Exception] = {}
        self.execute_errors: Dict[int, Exception] = {}
        self.revert_forward = False

        # call log
        self.calls: List[str] = []
        self.executed_ids: List[int] = []
        self.forwarded: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._tx_count = 0
        self._pending: Dict[str, tuple] = {}

    def _next_hash(self) -> str:
        self._tx_count += 1
        return "0x" + format(self._tx_count, "064x")

    async def get_proposal_count(self) -> int:
        self.calls.append("get_proposal_count")
        if self.count_error:
            raise self.count_error
        return max(self.proposals, default=0)

    async def get_proposal(self, proposal_id: int) -> Proposal:
        self.calls.append(f"get_proposal:{proposal_id}")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if proposal_id in self.read_errors:
                raise self.read_errors[proposal_id]
            return self.proposals[proposal_id]
        finally:
            self.in_flight -= 1

    async def get_execution_delay(self) -> int:
        self.calls.append("get_execution_delay")
        if self.delay_error:
            raise self.delay_error
        return self.execution_delay

    async def get_nonce(self, address: str) -> int:
        self.calls.append("get_nonce")
        return self.nonces.get(address, 0)

    async def verify_forward(self, request, signature: bytes) -> bool:
        self.calls.append("verify_forward")
        if request.nonce != self.nonces.get(request.sender, 0):
            return False
        try:
            signer = recover_forward_signer(request, "0x" + signature.hex(), self.chain_id, self.forwarder)
        except Exception:
            return False
        return signer == request.sender

    async def submit_forward(self, request, signature: bytes) -> TxHandle:
        self.calls.append("submit_forward")
        tx_hash = self._next_hash()
        self._pending[tx_hash] = ("forward", request)
        return TxHandle(tx_hash)

    async def submit_execute(self, proposal_id: int) -> TxHandle:
        self.calls.append(f"submit_execute:{proposal_id}")
        if proposal_id in self.execute_errors:
            raise self.execute_errors[proposal_id]
        tx_hash = self._next_hash()
        self._pending[tx_hash] = ("execute", proposal_id)
        return TxHandle(tx_hash)

    async def await_finality(self, handle: TxHandle) -> Receipt:
        self.calls.append("await_finality")
        kind, payload = self._pending.pop(handle.tx_hash)
        if kind == "forward":
            if self.revert_forward:
                raise ContractRevertError(f"Transaction {handle.tx_hash} reverted in block 7")
            self.nonces[payload.sender] = payload.nonce + 1
            self.forwarded.append((payload.sender, payload.nonce))
        else:
            p = self.proposals[payload]
            self.proposals[payload] = replace(p, executed=True)
            self.executed_ids.append(payload)
        return Receipt(tx_hash=handle.tx_hash, block_number=7, status=1, gas_used=21_000)

    async def get_chain_id(self) -> int:
        self.calls.append("get_chain_id")
        if self.chain_error:
            raise self.chain_error
        return self.chain_id


@pytest.fixture
def config() -> RelayerConfig:
    return RelayerConfig(
        relayer_private_key=RELAYER_KEY,
        dao_address=DAO_ADDRESS,
        forwarder_address=FORWARDER_ADDRESS,
        chain_id=CHAIN_ID,
        receipt_timeout=0.05,
        receipt_poll_interval=0.01,
    )


@pytest.fixture
def unconfigured() -> RelayerConfig:
    return RelayerConfig()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()
