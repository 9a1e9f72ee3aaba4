"""
govrelay Relay

Provides:
  - ForwardRequest / RelayOutcome / RelayErrorKind   (types.py)
  - ForwardingVerifier / Verification               (verifier.py)
  - RelayService                                    (service.py)
"""

from .types import ForwardRequest, RelayErrorKind, RelayOutcome
from .verifier import (
    ForwardingVerifier,
    Verification,
    VerificationStatus,
    check_structure,
)
from .service import RelayService

__all__ = [
    "ForwardRequest",
    "RelayErrorKind",
    "RelayOutcome",
    "ForwardingVerifier",
    "Verification",
    "VerificationStatus",
    "check_structure",
    "RelayService",
]
