"""
Relay value types: ForwardRequest and RelayOutcome.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from eth_utils import decode_hex, encode_hex, is_address, is_hex, to_checksum_address

from ..constants import FORWARD_REQUEST_FIELDS
from ..exceptions import MalformedRequestError

MISSING_REQUEST_OR_SIGNATURE = "Missing request or signature"
INVALID_REQUEST_FORMAT = "Invalid forward request format"
INVALID_SIGNATURE = "Invalid signature"
RELAYER_NOT_CONFIGURED = "Relayer not configured"

UINT256_MAX = 2 ** 256 - 1


def parse_uint(name: str, value: Any) -> int:
    """Accept ints, decimal strings and 0x hex strings. Booleans are rejected."""
    if isinstance(value, bool):
        raise MalformedRequestError(f"'{name}' must be an integer, got bool")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise MalformedRequestError(f"'{name}' is not an integer: {value!r}")
    else:
        raise MalformedRequestError(f"'{name}' must be an integer")
    if parsed < 0 or parsed > UINT256_MAX:
        raise MalformedRequestError(f"'{name}' out of uint256 range")
    return parsed


def parse_address(name: str, value: Any) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise MalformedRequestError(f"'{name}' is not a valid address")
    return to_checksum_address(value)


def parse_hex_bytes(name: str, value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith(("0x", "0X")) or not is_hex(value):
        raise MalformedRequestError(f"'{name}' must be a 0x-prefixed hex string")
    if len(value) % 2:
        raise MalformedRequestError(f"'{name}' has an odd number of hex digits")
    return decode_hex(value)


@dataclass(frozen=True)
class ForwardRequest:
    """
    A meta-transaction intent signed by *sender* (JSON key ``from``).

    The nonce must equal the forwarder's next nonce for the sender; that is
    checked on-chain, never here.
    """
    sender: str
    to: str
    value: int
    gas: int
    nonce: int
    data: bytes

    @classmethod
    def from_dict(cls, payload: Any) -> "ForwardRequest":
        """
        Structural validation of an inbound request.

        Raises:
            MalformedRequestError: a field is absent (None counts as absent)
                or ill-typed.
        """
        if not isinstance(payload, Mapping):
            raise MalformedRequestError("request must be an object")
        missing = [k for k in FORWARD_REQUEST_FIELDS if payload.get(k) is None]
        if missing:
            raise MalformedRequestError(f"missing fields: {', '.join(missing)}")
        if payload["data"] == "":
            raise MalformedRequestError("'data' is empty")

        return cls(
            sender=parse_address("from", payload["from"]),
            to=parse_address("to", payload["to"]),
            value=parse_uint("value", payload["value"]),
            gas=parse_uint("gas", payload["gas"]),
            nonce=parse_uint("nonce", payload["nonce"]),
            data=parse_hex_bytes("data", payload["data"]),
        )

    def as_abi_tuple(self) -> Tuple[str, str, int, int, int, bytes]:
        """Argument order of the forwarder's ForwardRequest struct."""
        return (self.sender, self.to, self.value, self.gas, self.nonce, self.data)

    def as_typed_message(self) -> Dict[str, Any]:
        """Message part of the EIP-712 payload."""
        return {
            "from": self.sender,
            "to": self.to,
            "value": self.value,
            "gas": self.gas,
            "nonce": self.nonce,
            "data": self.data,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.sender,
            "to": self.to,
            "value": self.value,
            "gas": self.gas,
            "nonce": self.nonce,
            "data": encode_hex(self.data),
        }


class RelayErrorKind(str, Enum):
    """Which side of the taxonomy a failed relay belongs to."""
    CLIENT_INPUT = "client_input"
    AUTHENTICITY = "authenticity"
    CONFIGURATION = "configuration"
    LEDGER = "ledger"


_STATUS_CODES = {
    RelayErrorKind.CLIENT_INPUT: 400,
    RelayErrorKind.AUTHENTICITY: 400,
    RelayErrorKind.CONFIGURATION: 500,
    RelayErrorKind.LEDGER: 500,
}


@dataclass
class RelayOutcome:
    """Result of one relay call. Not persisted."""
    success: bool
    tx_hash: Optional[str] = None
    sender: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    kind: Optional[RelayErrorKind] = None

    @classmethod
    def ok(cls, tx_hash: str, sender: str) -> "RelayOutcome":
        return cls(success=True, tx_hash=tx_hash, sender=sender)

    @classmethod
    def failed(
        cls,
        kind: RelayErrorKind,
        error: str,
        detail: Optional[str] = None,
        sender: Optional[str] = None,
    ) -> "RelayOutcome":
        return cls(success=False, error=error, detail=detail, kind=kind, sender=sender)

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return _STATUS_CODES.get(self.kind, 500)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "hash": self.tx_hash, "from": self.sender}
        return {"error": self.error}
