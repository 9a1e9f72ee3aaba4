"""
Proposal Classifier

Maps a proposal and the current time onto the execution lifecycle. Pure:
no I/O, no clock reads.
"""

from enum import Enum

from .proposals import Proposal


class ExecutionStatus(str, Enum):
    """Where a proposal stands with respect to execution."""
    ALREADY_EXECUTED = "already_executed"
    PENDING = "pending"                    # voting still open
    REJECTED = "rejected"
    WAITING_DELAY = "waiting_delay"        # approved, delay not elapsed
    READY_TO_EXECUTE = "ready_to_execute"


def ready_at(proposal: Proposal, execution_delay: int) -> int:
    """Earliest time an approved proposal may be executed."""
    return proposal.deadline + execution_delay


def classify(proposal: Proposal, now: float, execution_delay: int) -> ExecutionStatus:
    """
    First match wins:

        executed                         -> ALREADY_EXECUTED
        now < deadline                   -> PENDING
        votes_for <= votes_against       -> REJECTED
        now < deadline + execution_delay -> WAITING_DELAY
        otherwise                        -> READY_TO_EXECUTE

    Tallies are only judged once voting has closed, and a rejected proposal
    stays rejected whatever the delay.
    """
    if proposal.executed:
        return ExecutionStatus.ALREADY_EXECUTED
    if now < proposal.deadline:
        return ExecutionStatus.PENDING
    if not proposal.approved:
        return ExecutionStatus.REJECTED
    if now < ready_at(proposal, execution_delay):
        return ExecutionStatus.WAITING_DELAY
    return ExecutionStatus.READY_TO_EXECUTE
