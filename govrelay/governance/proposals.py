"""
Governance Proposals

The proposal record as stored by the DAO contract, the vote encoding, and
the display status shown to voters.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Sequence

from eth_utils import to_checksum_address


class VoteType(IntEnum):
    """Vote encoding of the DAO contract's vote(uint256,uint8)."""
    FOR = 0
    AGAINST = 1
    ABSTAIN = 2

    @classmethod
    def parse(cls, value: str) -> "VoteType":
        return cls[value.strip().upper()]


class DisplayStatus(str, Enum):
    """Voter-facing label. The scheduler uses ExecutionStatus instead."""
    ACTIVE = "active"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXECUTED = "executed"


@dataclass(frozen=True)
class Proposal:
    """
    On-chain DAO proposal.

    Fields:
        id:             Ledger-assigned identifier (dense, starting at 1)
        proposer:       Address that created the proposal
        recipient:      Address receiving *amount* on execution
        amount:         Transfer amount in wei
        deadline:       End of voting (unix seconds)
        votes_for:      Tally for
        votes_against:  Tally against
        votes_abstain:  Tally abstain (never decides the outcome)
        executed:       Set once by executeProposal, never cleared
        created_at:     Creation time (unix seconds)
    """
    id: int
    proposer: str
    recipient: str
    amount: int
    deadline: int
    votes_for: int
    votes_against: int
    votes_abstain: int
    executed: bool
    created_at: int

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> "Proposal":
        """Build from the decoded getProposal(uint256) struct."""
        (pid, proposer, recipient, amount, deadline,
         votes_for, votes_against, votes_abstain, executed, created_at) = values
        return cls(
            id=int(pid),
            proposer=to_checksum_address(proposer),
            recipient=to_checksum_address(recipient),
            amount=int(amount),
            deadline=int(deadline),
            votes_for=int(votes_for),
            votes_against=int(votes_against),
            votes_abstain=int(votes_abstain),
            executed=bool(executed),
            created_at=int(created_at),
        )

    @property
    def approved(self) -> bool:
        """Strict majority of for over against. Ties fail."""
        return self.votes_for > self.votes_against

    def display_status(self, now: float) -> DisplayStatus:
        if self.executed:
            return DisplayStatus.EXECUTED
        if now < self.deadline:
            return DisplayStatus.ACTIVE
        if self.approved:
            return DisplayStatus.APPROVED
        return DisplayStatus.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        # wei amounts exceed JSON's safe integer range
        return {
            "id": self.id,
            "proposer": self.proposer,
            "recipient": self.recipient,
            "amount": str(self.amount),
            "deadline": self.deadline,
            "votesFor": str(self.votes_for),
            "votesAgainst": str(self.votes_against),
            "votesAbstain": str(self.votes_abstain),
            "executed": self.executed,
            "createdAt": self.created_at,
        }
