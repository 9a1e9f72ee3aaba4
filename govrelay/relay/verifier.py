"""
Forwarding Verifier

Gatekeeper in front of the relay: a pure structural check of the inbound
(request, signature) pair, then the forwarding contract's own verify().
Never submits a transaction. Signatures and nonces are not checked
locally; the forwarder holds the only nonce store.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from ..exceptions import MalformedRequestError
from ..logger import get_logger
from .types import (
    INVALID_REQUEST_FORMAT,
    INVALID_SIGNATURE,
    MISSING_REQUEST_OR_SIGNATURE,
    ForwardRequest,
    parse_hex_bytes,
)

if TYPE_CHECKING:
    from ..ledger.base import Ledger

logger = get_logger(__name__)


class VerificationStatus(str, Enum):
    VALID = "valid"
    MALFORMED_REQUEST = "malformed_request"
    INVALID_SIGNATURE_OR_NONCE = "invalid_signature_or_nonce"


@dataclass(frozen=True)
class Verification:
    """
    Verdict on a (request, signature) pair.

    ``message`` is the client-facing error string, ``reason`` the detail
    (which field, why). Parsed values are attached when structure is valid.
    """
    status: VerificationStatus
    message: Optional[str] = None
    reason: Optional[str] = None
    request: Optional[ForwardRequest] = None
    signature: Optional[bytes] = None

    @property
    def is_valid(self) -> bool:
        return self.status == VerificationStatus.VALID

    @classmethod
    def malformed(cls, message: str, reason: str) -> "Verification":
        return cls(VerificationStatus.MALFORMED_REQUEST, message=message, reason=reason)


def check_structure(request: Any, signature: Any) -> Verification:
    """
    Structural completeness of an inbound relay body. Pure and synchronous.

    Returns VALID with the parsed ForwardRequest and signature bytes, or
    MALFORMED_REQUEST naming the problem.
    """
    if request is None or request == "" or not signature:
        return Verification.malformed(MISSING_REQUEST_OR_SIGNATURE, "request or signature absent")
    try:
        parsed = ForwardRequest.from_dict(request)
        sig = parse_hex_bytes("signature", signature)
    except MalformedRequestError as e:
        return Verification.malformed(INVALID_REQUEST_FORMAT, e.reason)
    return Verification(VerificationStatus.VALID, request=parsed, signature=sig)


class ForwardingVerifier:
    """
    Structural check plus delegated on-chain verification.

    Args:
        ledger: Ledger whose verify_forward is the authenticity oracle
    """

    def __init__(self, ledger: "Ledger"):
        self._ledger = ledger

    @staticmethod
    def check_structure(request: Any, signature: Any) -> Verification:
        return check_structure(request, signature)

    async def verify_parsed(self, request: ForwardRequest, signature: bytes) -> Verification:
        """On-chain verification of an already well-formed pair."""
        if await self._ledger.verify_forward(request, signature):
            return Verification(VerificationStatus.VALID, request=request, signature=signature)
        logger.warning(
            f"[Relay] Forwarder rejected request from {request.sender} (nonce={request.nonce})"
        )
        return Verification(
            VerificationStatus.INVALID_SIGNATURE_OR_NONCE,
            message=INVALID_SIGNATURE,
            reason="forwarder verify() returned false",
            request=request,
            signature=signature,
        )

    async def verify(self, request: Any, signature: Any) -> Verification:
        """
        Full verification of a raw pair. Ledger errors propagate.
        """
        verdict = check_structure(request, signature)
        if not verdict.is_valid:
            return verdict
        return await self.verify_parsed(verdict.request, verdict.signature)
