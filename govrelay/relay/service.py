"""
Relay Service

Runs one meta-transaction end to end:

    1. structural check            (no network)      -> 400 client input
    2. relayer configured          (no network)      -> 500 configuration
    3. forwarder verify()                            -> 400 invalid signature
    4. forwarder execute() + wait for inclusion      -> 200 hash + sender

Each step is a hard precondition of the next. A failed step submits
nothing, so invalid requests never cost the relayer gas. Replaying a request
after it succeeded fails at step 3 because the forwarder nonce moved on.
"""

from typing import TYPE_CHECKING, Any, Callable

from ..config import RelayerConfig
from ..exceptions import ConfigurationError, LedgerError
from ..logger import get_logger
from .types import RELAYER_NOT_CONFIGURED, RelayErrorKind, RelayOutcome
from .verifier import ForwardingVerifier, check_structure

if TYPE_CHECKING:
    from ..ledger.base import Ledger

logger = get_logger(__name__)

LedgerFactory = Callable[[RelayerConfig], "Ledger"]


class RelayService:
    """
    Args:
        config: Read-only relayer configuration
        ledger_factory: Builds a ledger for one call; invoked only once the
            request passed the offline checks
    """

    def __init__(self, config: RelayerConfig, ledger_factory: LedgerFactory):
        self._config = config
        self._ledger_factory = ledger_factory

    async def relay(self, request: Any, signature: Any) -> RelayOutcome:
        verdict = check_structure(request, signature)
        if not verdict.is_valid:
            logger.warning(f"[Relay] Rejected malformed request: {verdict.reason}")
            return RelayOutcome.failed(
                RelayErrorKind.CLIENT_INPUT, verdict.message, detail=verdict.reason
            )

        forward = verdict.request
        if not self._config.relay_configured:
            logger.error("[Relay] Relayer key or forwarder address not configured")
            return RelayOutcome.failed(
                RelayErrorKind.CONFIGURATION, RELAYER_NOT_CONFIGURED, sender=forward.sender
            )

        ledger = self._ledger_factory(self._config)
        verifier = ForwardingVerifier(ledger)
        try:
            async with ledger:
                verdict = await verifier.verify_parsed(forward, verdict.signature)
                if not verdict.is_valid:
                    return RelayOutcome.failed(
                        RelayErrorKind.AUTHENTICITY,
                        verdict.message,
                        detail=verdict.reason,
                        sender=forward.sender,
                    )

                logger.info(f"[Relay] Executing meta-tx from {forward.sender} to {forward.to}")
                handle = await ledger.submit_forward(forward, verdict.signature)
                receipt = await ledger.await_finality(handle)
        except ConfigurationError as e:
            logger.error(f"[Relay] Configuration error: {e}")
            return RelayOutcome.failed(RelayErrorKind.CONFIGURATION, str(e), sender=forward.sender)
        except LedgerError as e:
            logger.error(f"[Relay] Error relaying for {forward.sender}: {e}")
            return RelayOutcome.failed(RelayErrorKind.LEDGER, str(e), sender=forward.sender)

        logger.info(f"[Relay] Meta-tx executed successfully. Hash: {receipt.tx_hash}")
        return RelayOutcome.ok(tx_hash=receipt.tx_hash, sender=forward.sender)
