"""
DAO and MinimalForwarder contract surface

Function signatures and return types of the two deployed contracts, plus
call-data encoders for each call the relayer or its clients make.
"""

from typing import Tuple

from eth_utils import to_checksum_address

from ..crypto.abi import encode_function_call
from ..governance.proposals import VoteType

FORWARD_REQUEST_TUPLE = "(address,address,uint256,uint256,uint256,bytes)"

# ── DAO ───────────────────────────────────────────────────────────────

DAO_PROPOSAL_COUNT = "proposalCount()"
DAO_GET_PROPOSAL = "getProposal(uint256)"
DAO_EXECUTION_DELAY = "EXECUTION_DELAY()"
DAO_EXECUTE_PROPOSAL = "executeProposal(uint256)"
DAO_VOTE = "vote(uint256,uint8)"
DAO_CREATE_PROPOSAL = "createProposal(address,uint256,uint256)"

# getProposal returns a struct of static fields: id, proposer, recipient,
# amount, deadline, votesFor, votesAgainst, votesAbstain, executed, createdAt
PROPOSAL_RETURN_TYPES: Tuple[str, ...] = (
    "(uint256,address,address,uint256,uint256,uint256,uint256,uint256,bool,uint256)",
)

# ── Forwarder ─────────────────────────────────────────────────────────

FORWARDER_GET_NONCE = "getNonce(address)"
FORWARDER_VERIFY = f"verify({FORWARD_REQUEST_TUPLE},bytes)"
FORWARDER_EXECUTE = f"execute({FORWARD_REQUEST_TUPLE},bytes)"


def encode_proposal_count() -> bytes:
    return encode_function_call(DAO_PROPOSAL_COUNT)


def encode_get_proposal(proposal_id: int) -> bytes:
    return encode_function_call(DAO_GET_PROPOSAL, proposal_id)


def encode_execution_delay() -> bytes:
    return encode_function_call(DAO_EXECUTION_DELAY)


def encode_execute_proposal(proposal_id: int) -> bytes:
    return encode_function_call(DAO_EXECUTE_PROPOSAL, proposal_id)


def encode_vote(proposal_id: int, vote: VoteType) -> bytes:
    """Call data a voter signs into a ForwardRequest."""
    return encode_function_call(DAO_VOTE, proposal_id, int(vote))


def encode_create_proposal(recipient: str, amount: int, deadline: int) -> bytes:
    return encode_function_call(
        DAO_CREATE_PROPOSAL, to_checksum_address(recipient), amount, deadline
    )


def encode_get_nonce(address: str) -> bytes:
    return encode_function_call(FORWARDER_GET_NONCE, to_checksum_address(address))


def encode_verify(request_tuple: tuple, signature: bytes) -> bytes:
    return encode_function_call(FORWARDER_VERIFY, request_tuple, signature)


def encode_forward_execute(request_tuple: tuple, signature: bytes) -> bytes:
    return encode_function_call(FORWARDER_EXECUTE, request_tuple, signature)
