"""
EIP-712 ForwardRequest typed data

Builds, signs and recovers the typed-data payload the browser client signs
before handing a vote to the relayer. The relay path does not use these:
the forwarding contract is the only verifier there. They exist for the CLI
and for producing fixtures.
"""

from typing import Any, Dict

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import decode_hex, encode_hex, to_checksum_address

from ..constants import FORWARDER_DOMAIN_NAME, FORWARDER_DOMAIN_VERSION
from ..relay.types import ForwardRequest

FORWARD_REQUEST_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "ForwardRequest": [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "gas", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "data", "type": "bytes"},
    ],
}


def forwarder_domain(chain_id: int, forwarder_address: str) -> Dict[str, Any]:
    return {
        "name": FORWARDER_DOMAIN_NAME,
        "version": FORWARDER_DOMAIN_VERSION,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(forwarder_address),
    }


def build_forward_typed_data(
    request: ForwardRequest,
    chain_id: int,
    forwarder_address: str,
) -> Dict[str, Any]:
    """Full EIP-712 payload (types, domain, primary type, message)."""
    return {
        "types": FORWARD_REQUEST_TYPES,
        "domain": forwarder_domain(chain_id, forwarder_address),
        "primaryType": "ForwardRequest",
        "message": request.as_typed_message(),
    }


def _signable(request: ForwardRequest, chain_id: int, forwarder_address: str) -> SignableMessage:
    return encode_typed_data(full_message=build_forward_typed_data(request, chain_id, forwarder_address))


def sign_forward_request(
    request: ForwardRequest,
    private_key: str,
    chain_id: int,
    forwarder_address: str,
) -> str:
    """
    Sign *request* as its sender would.

    Returns:
        0x-prefixed 65-byte signature
    """
    signed = Account.sign_message(_signable(request, chain_id, forwarder_address), private_key)
    return encode_hex(signed.signature)


def recover_forward_signer(
    request: ForwardRequest,
    signature: str,
    chain_id: int,
    forwarder_address: str,
) -> str:
    """Address that produced *signature* over *request*."""
    return Account.recover_message(
        _signable(request, chain_id, forwarder_address),
        signature=decode_hex(signature),
    )
