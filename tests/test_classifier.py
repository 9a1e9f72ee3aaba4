"""
Proposal classification and display status.
"""

import pytest

from conftest import DAY, T, make_proposal

from govrelay.governance.classifier import ExecutionStatus, classify, ready_at
from govrelay.governance.proposals import DisplayStatus, Proposal, VoteType


class TestClassify:

    def test_executed_wins_over_everything(self):
        p = make_proposal(1, votes_for=1, votes_against=50, executed=True)
        assert classify(p, T - 100, DAY) == ExecutionStatus.ALREADY_EXECUTED
        assert classify(p, T + 10 * DAY, DAY) == ExecutionStatus.ALREADY_EXECUTED

    def test_voting_open_is_pending(self):
        p = make_proposal(1, votes_for=100, votes_against=0)
        assert classify(p, T - 1, DAY) == ExecutionStatus.PENDING

    def test_deadline_itself_closes_voting(self):
        p = make_proposal(1, votes_for=3, votes_against=1)
        assert classify(p, T, 0) == ExecutionStatus.READY_TO_EXECUTE

    @pytest.mark.parametrize("votes_for,votes_against", [(0, 0), (4, 4), (2, 9)])
    @pytest.mark.parametrize("delay", [0, DAY, 30 * DAY])
    def test_not_approved_is_rejected_regardless_of_delay(self, votes_for, votes_against, delay):
        p = make_proposal(1, votes_for=votes_for, votes_against=votes_against)
        for now in (T, T + 1, T + delay, T + delay + 1):
            assert classify(p, now, delay) == ExecutionStatus.REJECTED

    def test_abstain_never_decides(self):
        p = make_proposal(1, votes_for=5, votes_against=5, votes_abstain=1000)
        assert classify(p, T + 2 * DAY, DAY) == ExecutionStatus.REJECTED

    def test_approved_inside_delay_waits(self):
        p = make_proposal(3, votes_for=10, votes_against=4)
        assert classify(p, T, DAY) == ExecutionStatus.WAITING_DELAY
        assert classify(p, T + DAY - 1, DAY) == ExecutionStatus.WAITING_DELAY

    def test_approved_after_delay_is_ready(self):
        p = make_proposal(3, votes_for=10, votes_against=4)
        assert classify(p, T + DAY, DAY) == ExecutionStatus.READY_TO_EXECUTE
        assert classify(p, T + 5 * DAY, DAY) == ExecutionStatus.READY_TO_EXECUTE

    def test_ready_at(self):
        assert ready_at(make_proposal(3), DAY) == T + DAY


class TestProposal:

    def test_from_tuple(self):
        values = (
            7,
            "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
            "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc",
            5 * 10 ** 18, T, 10, 4, 1, False, T - DAY,
        )
        p = Proposal.from_tuple(values)
        assert p.id == 7
        assert p.proposer == "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
        assert p.amount == 5 * 10 ** 18
        assert p.approved
        assert p.executed is False

    def test_display_status(self):
        assert make_proposal(1, executed=True).display_status(T + 1) == DisplayStatus.EXECUTED
        assert make_proposal(1).display_status(T - 1) == DisplayStatus.ACTIVE
        assert make_proposal(1, votes_for=2, votes_against=1).display_status(T) == DisplayStatus.APPROVED
        assert make_proposal(1, votes_for=1, votes_against=1).display_status(T) == DisplayStatus.REJECTED

    def test_to_dict_stringifies_large_numbers(self):
        d = make_proposal(2, amount=10 ** 30, votes_for=10 ** 25).to_dict()
        assert d["amount"] == str(10 ** 30)
        assert d["votesFor"] == str(10 ** 25)
        assert d["id"] == 2
        assert d["executed"] is False

    @pytest.mark.parametrize("text,expected", [
        ("for", VoteType.FOR),
        ("AGAINST", VoteType.AGAINST),
        (" abstain ", VoteType.ABSTAIN),
    ])
    def test_vote_type_parse(self, text, expected):
        assert VoteType.parse(text) == expected

    def test_vote_type_parse_unknown(self):
        with pytest.raises(KeyError):
            VoteType.parse("maybe")
