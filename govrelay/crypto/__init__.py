"""
govrelay Crypto Module

- ABI call encoding / return decoding  (abi.py)
- EIP-712 ForwardRequest signing       (typed_data.py)
"""

from .abi import (
    compute_function_selector,
    decode_function_call,
    decode_return,
    encode_function_call,
)
from .typed_data import (
    build_forward_typed_data,
    recover_forward_signer,
    sign_forward_request,
)

__all__ = [
    "compute_function_selector",
    "decode_function_call",
    "decode_return",
    "encode_function_call",
    "build_forward_typed_data",
    "recover_forward_signer",
    "sign_forward_request",
]
