"""
govrelay Ledger

Provides:
  - Ledger / TxHandle / Receipt     (base.py)
  - LedgerClient (JSON-RPC + httpx)  (client.py)
  - DAO / forwarder call encoders    (contracts.py)
"""

from .base import Ledger, Receipt, TxHandle
from .client import LedgerClient

__all__ = [
    "Ledger",
    "LedgerClient",
    "Receipt",
    "TxHandle",
]
