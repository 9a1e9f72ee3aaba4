"""
Command-line interface (click CliRunner).
"""

import json

import pytest
from click.testing import CliRunner

from conftest import (
    CHAIN_ID,
    DAO_ADDRESS,
    FORWARDER_ADDRESS,
    RELAYER_KEY,
    VOTER_ADDRESS,
    VOTER_KEY,
    FakeLedger,
    make_proposal,
)

from govrelay.cli import main as cli_main
from govrelay.crypto.typed_data import recover_forward_signer
from govrelay.exceptions import LedgerUnavailableError
from govrelay.governance.proposals import VoteType
from govrelay.ledger.contracts import encode_vote
from govrelay.relay.types import ForwardRequest

ENV = {
    "RELAYER_PRIVATE_KEY": RELAYER_KEY,
    "DAO_ADDRESS": DAO_ADDRESS,
    "FORWARDER_ADDRESS": FORWARDER_ADDRESS,
    "CHAIN_ID": str(CHAIN_ID),
}


@pytest.fixture
def fake(monkeypatch):
    ledger = FakeLedger()
    monkeypatch.setattr(cli_main, "LedgerClient", lambda config: ledger)
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)
    return ledger


@pytest.fixture
def runner(tmp_path, monkeypatch):
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    return CliRunner()


class TestSweepCommand:

    def test_prints_report(self, runner, fake):
        fake.proposals = {1: make_proposal(1, votes_for=3, votes_against=1)}
        result = runner.invoke(cli_main.cli, ["sweep"], obj={})

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["checked"] == 1
        assert report["results"][0]["status"] == "executed"

    def test_fatal_error_exits_1(self, runner, fake):
        fake.count_error = LedgerUnavailableError("proposalCount: node down")
        result = runner.invoke(cli_main.cli, ["sweep"], obj={})
        assert result.exit_code == 1
        assert "node down" in result.output

    def test_not_configured(self, runner, monkeypatch):
        for key in ENV:
            monkeypatch.delenv(key, raising=False)
        result = runner.invoke(cli_main.cli, ["sweep"], obj={})
        assert result.exit_code == 1
        assert "Daemon not configured" in result.output


class TestWatch:

    def test_runs_requested_number_of_sweeps(self, runner, fake):
        fake.proposals = {1: make_proposal(1, votes_for=3, votes_against=1)}
        result = runner.invoke(cli_main.cli, ["watch", "--interval", "0.01", "--max-sweeps", "3"], obj={})

        assert result.exit_code == 0, result.output
        assert fake.calls.count("get_proposal_count") == 3
        assert fake.executed_ids == [1]

    @pytest.mark.asyncio
    async def test_failed_sweep_does_not_stop_loop(self, fake):
        fake.count_error = LedgerUnavailableError("down")
        config = cli_main.load_config(environ=ENV, env_file=None)
        assert await cli_main.watch_loop(config, 0.001, max_sweeps=2) == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_stop_loop(self, fake):
        fake.count_error = RuntimeError("boom")
        config = cli_main.load_config(environ=ENV, env_file=None)

        assert await cli_main.watch_loop(config, 0.001, max_sweeps=2) == 2
        assert fake.calls.count("get_proposal_count") == 2


class TestSignVote:

    def test_prints_signed_relay_body(self, runner, fake, monkeypatch):
        monkeypatch.setenv("VOTER_PRIVATE_KEY", VOTER_KEY)
        fake.nonces[VOTER_ADDRESS] = 2

        result = runner.invoke(cli_main.cli, ["sign-vote", "--proposal", "3", "--vote", "against"], obj={})

        assert result.exit_code == 0, result.output
        body = json.loads(result.stdout)
        request = ForwardRequest.from_dict(body["request"])
        assert request.sender == VOTER_ADDRESS
        assert request.to == DAO_ADDRESS
        assert request.nonce == 2
        assert request.data == encode_vote(3, VoteType.AGAINST)
        assert recover_forward_signer(request, body["signature"], CHAIN_ID, FORWARDER_ADDRESS) == VOTER_ADDRESS

    def test_requires_voter_key(self, runner, fake, monkeypatch):
        monkeypatch.delenv("VOTER_PRIVATE_KEY", raising=False)
        result = runner.invoke(cli_main.cli, ["sign-vote", "--proposal", "3", "--vote", "for"], obj={})
        assert result.exit_code == 1
        assert "VOTER_PRIVATE_KEY" in result.output
