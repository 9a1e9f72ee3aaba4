"""
Relay service: the four ordered steps of a gasless vote.
"""

from unittest.mock import MagicMock

import pytest

from conftest import (
    CHAIN_ID,
    DAO_ADDRESS,
    FORWARDER_ADDRESS,
    RELAYER_KEY,
    VOTER_ADDRESS,
    VOTER_KEY,
    FakeLedger,
)

from govrelay.config import RelayerConfig
from govrelay.crypto.typed_data import sign_forward_request
from govrelay.exceptions import ConfigurationError, LedgerUnavailableError
from govrelay.governance.proposals import VoteType
from govrelay.ledger.contracts import encode_vote
from govrelay.relay.service import RelayService
from govrelay.relay.types import ForwardRequest, RelayErrorKind


def signed_vote(nonce=0, key=VOTER_KEY, proposal_id=3):
    request = ForwardRequest(
        sender=VOTER_ADDRESS,
        to=DAO_ADDRESS,
        value=0,
        gas=1_000_000,
        nonce=nonce,
        data=encode_vote(proposal_id, VoteType.FOR),
    )
    return request.to_dict(), sign_forward_request(request, key, CHAIN_ID, FORWARDER_ADDRESS)


class LedgerFactory:
    """Counts how many ledgers the service asked for."""

    def __init__(self, ledger):
        self.ledger = ledger
        self.built = 0

    def __call__(self, config):
        self.built += 1
        return self.ledger


@pytest.fixture
def factory():
    return LedgerFactory(FakeLedger())


class TestRelay:

    @pytest.mark.asyncio
    async def test_successful_relay(self, config, factory):
        outcome = await RelayService(config, factory).relay(*signed_vote())

        assert outcome.success
        assert outcome.status_code == 200
        assert outcome.sender == VOTER_ADDRESS
        assert outcome.to_dict() == {"success": True, "hash": outcome.tx_hash, "from": VOTER_ADDRESS}
        assert factory.ledger.calls == ["verify_forward", "submit_forward", "await_finality"]
        assert factory.ledger.nonces[VOTER_ADDRESS] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["from", "to", "value", "gas", "nonce", "data"])
    async def test_missing_field_makes_no_network_call(self, config, factory, field):
        body, sig = signed_vote()
        del body[field]
        outcome = await RelayService(config, factory).relay(body, sig)

        assert outcome.status_code == 400
        assert outcome.kind == RelayErrorKind.CLIENT_INPUT
        assert outcome.to_dict() == {"error": "Invalid forward request format"}
        assert factory.built == 0

    @pytest.mark.asyncio
    async def test_missing_signature(self, config, factory):
        body, _ = signed_vote()
        outcome = await RelayService(config, factory).relay(body, None)
        assert outcome.to_dict() == {"error": "Missing request or signature"}
        assert factory.built == 0

    @pytest.mark.asyncio
    async def test_offline_rejections_never_build_a_ledger(self, config):
        factory = MagicMock()
        service = RelayService(config, factory)
        await service.relay(None, None)
        await service.relay({"from": VOTER_ADDRESS}, "0x12")
        await service.relay([], "0x12")
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_unconfigured_relayer(self, unconfigured, factory):
        outcome = await RelayService(unconfigured, factory).relay(*signed_vote())
        assert outcome.status_code == 500
        assert outcome.to_dict() == {"error": "Relayer not configured"}
        assert factory.built == 0

    @pytest.mark.asyncio
    async def test_bad_signature_submits_nothing(self, config, factory):
        outcome = await RelayService(config, factory).relay(*signed_vote(key=RELAYER_KEY))

        assert outcome.status_code == 400
        assert outcome.kind == RelayErrorKind.AUTHENTICITY
        assert outcome.to_dict() == {"error": "Invalid signature"}
        assert "submit_forward" not in factory.ledger.calls

    @pytest.mark.asyncio
    async def test_replayed_nonce_is_rejected(self, config, factory):
        service = RelayService(config, factory)
        body, sig = signed_vote(nonce=0)

        first = await service.relay(body, sig)
        assert first.success

        replay = await service.relay(body, sig)
        assert not replay.success
        assert replay.to_dict() == {"error": "Invalid signature"}
        assert factory.ledger.forwarded == [(VOTER_ADDRESS, 0)]

    @pytest.mark.asyncio
    async def test_next_nonce_after_replay_is_accepted(self, config, factory):
        service = RelayService(config, factory)
        assert (await service.relay(*signed_vote(nonce=0))).success
        assert (await service.relay(*signed_vote(nonce=1, proposal_id=4))).success
        assert factory.ledger.nonces[VOTER_ADDRESS] == 2

    @pytest.mark.asyncio
    async def test_reverted_forward_is_ledger_failure(self, config, factory):
        factory.ledger.revert_forward = True
        outcome = await RelayService(config, factory).relay(*signed_vote())

        assert outcome.status_code == 500
        assert outcome.kind == RelayErrorKind.LEDGER
        assert "reverted" in outcome.error

    @pytest.mark.asyncio
    async def test_unreachable_node(self, config):
        class DownLedger(FakeLedger):
            async def verify_forward(self, request, signature):
                raise LedgerUnavailableError("eth_call: cannot reach http://127.0.0.1:8545")

        outcome = await RelayService(config, LedgerFactory(DownLedger())).relay(*signed_vote())
        assert outcome.status_code == 500
        assert outcome.to_dict() == {"error": "eth_call: cannot reach http://127.0.0.1:8545"}

    @pytest.mark.asyncio
    async def test_configuration_error_from_ledger(self, config):
        class BadKeyLedger(FakeLedger):
            async def submit_forward(self, request, signature):
                raise ConfigurationError("Invalid relayer private key")

        outcome = await RelayService(config, LedgerFactory(BadKeyLedger())).relay(*signed_vote())
        assert outcome.status_code == 500
        assert outcome.kind == RelayErrorKind.CONFIGURATION


class TestRelayConfiguredFlag:

    def test_requires_key_and_forwarder(self):
        assert not RelayerConfig(relayer_private_key=RELAYER_KEY).relay_configured
        assert not RelayerConfig(forwarder_address=FORWARDER_ADDRESS).relay_configured
        assert RelayerConfig(
            relayer_private_key=RELAYER_KEY, forwarder_address=FORWARDER_ADDRESS
        ).relay_configured
