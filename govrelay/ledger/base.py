"""
Ledger interface

Abstract contract the relay and the execution daemon depend on. The ledger
(DAO + forwarder contracts behind a node) is the single source of truth for
proposals, tallies and forwarder nonces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..governance.proposals import Proposal
    from ..relay.types import ForwardRequest


@dataclass(frozen=True)
class TxHandle:
    """A submitted, not yet final, transaction."""
    tx_hash: str


@dataclass(frozen=True)
class Receipt:
    """Inclusion receipt of a transaction."""
    tx_hash: str
    block_number: int
    status: int
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class Ledger(ABC):
    """
    Read proposal and nonce state, submit calls, wait for inclusion.

    Implementations never retry and never swallow failures: every error
    surfaces as a LedgerError subclass carrying the underlying message.

    Usable as an async context manager scoping one unit of work (a sweep, an
    API request); implementations may hold a connection for its duration.
    """

    async def __aenter__(self) -> "Ledger":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    # ── Governance reads ──────────────────────────────────────────────

    @abstractmethod
    async def get_proposal_count(self) -> int:
        """Highest proposal id (ids are 1..count)."""

    @abstractmethod
    async def get_proposal(self, proposal_id: int) -> "Proposal":
        ...

    @abstractmethod
    async def get_execution_delay(self) -> int:
        """Seconds between voting deadline and earliest execution."""

    # ── Forwarder ─────────────────────────────────────────────────────

    @abstractmethod
    async def get_nonce(self, address: str) -> int:
        """Next forwarder nonce expected from *address*."""

    @abstractmethod
    async def verify_forward(self, request: "ForwardRequest", signature: bytes) -> bool:
        """Forwarder's own signature and nonce check. No state change."""

    # ── Writes ────────────────────────────────────────────────────────

    @abstractmethod
    async def submit_forward(self, request: "ForwardRequest", signature: bytes) -> TxHandle:
        ...

    @abstractmethod
    async def submit_execute(self, proposal_id: int) -> TxHandle:
        ...

    @abstractmethod
    async def await_finality(self, handle: TxHandle) -> Receipt:
        """Block until *handle* is included. Reverted transactions raise."""

    # ── Network ───────────────────────────────────────────────────────

    @abstractmethod
    async def get_chain_id(self) -> int:
        ...
