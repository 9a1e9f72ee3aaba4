"""
JSON-RPC Ledger Client

Talks to an Ethereum-compatible node over JSON-RPC 2.0 (httpx). Reads are
eth_call against "latest"; writes are legacy transactions signed locally by
the relayer key and pushed with eth_sendRawTransaction.

The client keeps no ledger state beyond the read-only config: outside an
`async with` block and without an injected httpx.AsyncClient, each RPC opens
and closes its own.
"""

import asyncio
import time
from typing import Any, List, Optional

import httpx
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import decode_hex, encode_hex, to_checksum_address

from ..config import RelayerConfig
from ..crypto.abi import decode_return
from ..exceptions import (
    ConfigurationError,
    ContractRevertError,
    LedgerRPCError,
    LedgerTimeoutError,
    LedgerUnavailableError,
)
from ..governance.proposals import Proposal
from ..logger import get_logger
from ..relay.types import ForwardRequest
from . import contracts
from .base import Ledger, Receipt, TxHandle

logger = get_logger(__name__)

# JSON-RPC error code geth/anvil/hardhat use for "execution reverted"
REVERT_ERROR_CODE = 3


def hex_to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def _raise_rpc_error(method: str, error: Any) -> None:
    if isinstance(error, dict):
        message = str(error.get("message") or "unknown error")
        code = error.get("code")
        data = error.get("data")
    else:
        message, code, data = str(error), None, None

    if code == REVERT_ERROR_CODE or "revert" in message.lower():
        raise ContractRevertError(message, code=code, data=data)
    raise LedgerRPCError(f"{method} failed: {message}", code=code, data=data)


class LedgerClient(Ledger):
    """
    Ledger over JSON-RPC.

    One instance serves one unit of work (a relay call, a sweep). Entering it
    as an async context manager keeps a single httpx client open for that
    work; writes through one instance are sent one at a time so each draws
    its own relayer nonce.

    Args:
        config: Immutable relayer configuration
        http_client: Optional shared client (tests inject a MockTransport one)
    """

    def __init__(
        self,
        config: RelayerConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = config
        self._client = http_client
        self._owns_client = False
        self._send_lock = asyncio.Lock()

    @property
    def config(self) -> RelayerConfig:
        return self._config

    async def __aenter__(self) -> "LedgerClient":
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    # -- Transport ----------------------------------------------------------

    async def _rpc(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC call and return its ``result``.

        Raises:
            LedgerUnavailableError: transport failure or non-2xx status
            ContractRevertError / LedgerRPCError: error object in the response
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        client = self._client or httpx.AsyncClient()
        should_close = self._client is None

        try:
            response = await client.post(
                self._config.rpc_url,
                json=payload,
                timeout=self._config.rpc_timeout,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise LedgerUnavailableError(
                f"{method}: node answered HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise LedgerUnavailableError(
                f"{method}: cannot reach {self._config.rpc_url} ({type(e).__name__}: {e})"
            ) from e
        except ValueError as e:
            raise LedgerRPCError(f"{method}: invalid JSON response ({e})") from e
        finally:
            if should_close:
                await client.aclose()

        if not isinstance(body, dict):
            raise LedgerRPCError(f"{method}: malformed JSON-RPC response")
        if body.get("error"):
            _raise_rpc_error(method, body["error"])
        return body.get("result")

    async def _call(self, to: str, data: bytes) -> bytes:
        tx: dict = {"to": to, "data": encode_hex(data)}
        sender = self._config.relayer_address
        if sender:
            tx["from"] = sender
        result = await self._rpc("eth_call", [tx, "latest"])
        return decode_hex(result) if result else b""

    # -- Config guards ------------------------------------------------------

    def _dao(self) -> str:
        if not self._config.dao_address:
            raise ConfigurationError("DAO address not configured")
        return self._config.dao_address

    def _forwarder(self) -> str:
        if not self._config.forwarder_address:
            raise ConfigurationError("Forwarder address not configured")
        return self._config.forwarder_address

    def _account(self) -> LocalAccount:
        if not self._config.relayer_private_key:
            raise ConfigurationError("Relayer private key not configured")
        try:
            return Account.from_key(self._config.relayer_private_key)
        except Exception as e:
            raise ConfigurationError(f"Invalid relayer private key: {e}") from e

    # -- Governance reads ---------------------------------------------------

    async def get_proposal_count(self) -> int:
        raw = await self._call(self._dao(), contracts.encode_proposal_count())
        return decode_return(["uint256"], raw)[0]

    async def get_proposal(self, proposal_id: int) -> Proposal:
        raw = await self._call(self._dao(), contracts.encode_get_proposal(proposal_id))
        (values,) = decode_return(contracts.PROPOSAL_RETURN_TYPES, raw)
        return Proposal.from_tuple(values)

    async def get_execution_delay(self) -> int:
        raw = await self._call(self._dao(), contracts.encode_execution_delay())
        return decode_return(["uint256"], raw)[0]

    # -- Forwarder ----------------------------------------------------------

    async def get_nonce(self, address: str) -> int:
        raw = await self._call(self._forwarder(), contracts.encode_get_nonce(address))
        return decode_return(["uint256"], raw)[0]

    async def verify_forward(self, request: ForwardRequest, signature: bytes) -> bool:
        """
        A revert from verify() (e.g. a signature the ECDSA library refuses
        to parse) is the forwarder rejecting the request, so it maps to False.
        """
        data = contracts.encode_verify(request.as_abi_tuple(), signature)
        try:
            raw = await self._call(self._forwarder(), data)
        except ContractRevertError as e:
            logger.warning(f"[Ledger] verify() reverted for {request.sender}: {e}")
            return False
        return bool(decode_return(["bool"], raw)[0])

    # -- Writes -------------------------------------------------------------

    async def _send_transaction(self, to: str, data: bytes) -> TxHandle:
        account = self._account()
        sender = account.address
        call = {"from": sender, "to": to, "data": encode_hex(data)}

        gas_price, gas = await asyncio.gather(
            self._rpc("eth_gasPrice", []),
            self._rpc("eth_estimateGas", [call]),
        )

        # The pending count only moves once the node has accepted the raw tx
        async with self._send_lock:
            nonce = await self._rpc("eth_getTransactionCount", [sender, "pending"])
            tx = {
                "to": to_checksum_address(to),
                "data": data,
                "value": 0,
                "gas": hex_to_int(gas),
                "gasPrice": hex_to_int(gas_price),
                "nonce": hex_to_int(nonce),
                "chainId": self._config.chain_id,
            }
            signed = account.sign_transaction(tx)
            tx_hash = await self._rpc("eth_sendRawTransaction", [encode_hex(signed.raw_transaction)])
        logger.debug(f"[Ledger] Sent {tx_hash} from {sender} to {to}")
        return TxHandle(tx_hash=tx_hash)

    async def submit_forward(self, request: ForwardRequest, signature: bytes) -> TxHandle:
        data = contracts.encode_forward_execute(request.as_abi_tuple(), signature)
        return await self._send_transaction(self._forwarder(), data)

    async def submit_execute(self, proposal_id: int) -> TxHandle:
        data = contracts.encode_execute_proposal(proposal_id)
        return await self._send_transaction(self._dao(), data)

    async def await_finality(self, handle: TxHandle) -> Receipt:
        deadline = time.monotonic() + self._config.receipt_timeout
        while True:
            raw = await self._rpc("eth_getTransactionReceipt", [handle.tx_hash])
            if raw:
                break
            if time.monotonic() >= deadline:
                raise LedgerTimeoutError(
                    f"Transaction {handle.tx_hash} not included after "
                    f"{self._config.receipt_timeout:.0f}s"
                )
            await asyncio.sleep(self._config.receipt_poll_interval)

        receipt = Receipt(
            tx_hash=raw.get("transactionHash") or handle.tx_hash,
            block_number=hex_to_int(raw.get("blockNumber") or 0),
            status=hex_to_int(raw.get("status") or "0x1"),
            gas_used=hex_to_int(raw["gasUsed"]) if raw.get("gasUsed") else None,
        )
        if not receipt.succeeded:
            raise ContractRevertError(
                f"Transaction {receipt.tx_hash} reverted in block {receipt.block_number}"
            )
        return receipt

    # -- Network ------------------------------------------------------------

    async def get_chain_id(self) -> int:
        return hex_to_int(await self._rpc("eth_chainId", []))

    def __repr__(self) -> str:
        return f"<LedgerClient rpc={self._config.rpc_url} chain={self._config.chain_id}>"
