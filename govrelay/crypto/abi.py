"""
Contract Call Encoding

Ethereum ABI helpers: function selectors, call data and return data.
"""

from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from ..exceptions import LedgerDecodeError


def compute_function_selector(function_signature: str) -> bytes:
    """
    Compute Ethereum function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: Function signature like "vote(uint256,uint8)"

    Returns:
        4-byte function selector
    """
    return keccak(text=function_signature)[:4]


def split_argument_types(type_list: str) -> List[str]:
    """
    Split a comma separated ABI type list, keeping tuple types intact.

    "(address,uint256),bytes" -> ["(address,uint256)", "bytes"]
    """
    types: List[str] = []
    depth = 0
    current = ""
    for ch in type_list:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            types.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        types.append(current.strip())
    return types


def argument_types(function_signature: str) -> List[str]:
    """Parse argument types from "name(type,...)"."""
    args_start = function_signature.index("(") + 1
    args_end = function_signature.rindex(")")
    return split_argument_types(function_signature[args_start:args_end])


def encode_function_call(function_signature: str, *args: Any) -> bytes:
    """
    Encode function call data (selector + ABI-encoded arguments).

    Args:
        function_signature: Function signature
        *args: Function arguments

    Returns:
        Encoded call data
    """
    selector = compute_function_selector(function_signature)
    arg_types = argument_types(function_signature)
    if not arg_types:
        return selector
    return selector + encode(arg_types, list(args))


def decode_function_call(data: bytes) -> Tuple[bytes, bytes]:
    """Split call data into selector and arguments."""
    if len(data) < 4:
        return b"", b""
    return data[:4], data[4:]


def decode_return(output_types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """
    Decode contract return data.

    Raises:
        LedgerDecodeError: when the node returned nothing (no contract at
            the address) or data that does not match *output_types*.
    """
    if not data:
        raise LedgerDecodeError(
            f"Empty return data decoding {list(output_types)} (is the contract deployed?)"
        )
    try:
        return decode(list(output_types), data)
    except (DecodingError, ValueError, TypeError) as e:
        raise LedgerDecodeError(f"Cannot decode {list(output_types)}: {e}") from e
