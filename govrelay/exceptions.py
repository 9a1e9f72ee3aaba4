"""
govrelay Exceptions

Custom exception classes for the relay service and execution daemon.
"""

from typing import Any, Optional


class GovRelayException(Exception):
    """Base exception for govrelay."""
    pass


class ConfigurationError(GovRelayException):
    """Relayer key or contract addresses are missing or invalid."""
    pass


class MalformedRequestError(GovRelayException):
    """A forward request failed structural validation."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class LedgerError(GovRelayException):
    """Any failure talking to the ledger. Carries the underlying message."""
    pass


class LedgerUnavailableError(LedgerError):
    """RPC endpoint unreachable or answered with a non-2xx status."""
    pass


class LedgerRPCError(LedgerError):
    """The node returned a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class ContractRevertError(LedgerRPCError):
    """A contract call or mined transaction reverted."""
    pass


class LedgerTimeoutError(LedgerError):
    """Transaction receipt did not appear within the configured timeout."""
    pass


class LedgerDecodeError(LedgerError):
    """Contract return data could not be ABI-decoded."""
    pass
