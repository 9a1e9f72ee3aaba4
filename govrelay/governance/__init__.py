"""
govrelay Governance

Provides:
  - Proposal / VoteType / DisplayStatus                  (proposals.py)
  - ExecutionStatus / classify                           (classifier.py)
  - ExecutionScheduler / ExecutionResult / SweepReport   (scheduler.py)
"""

from .proposals import DisplayStatus, Proposal, VoteType
from .classifier import ExecutionStatus, classify, ready_at
from .scheduler import (
    ExecutionResult,
    ExecutionScheduler,
    ResultStatus,
    SweepReport,
)

__all__ = [
    # Proposals
    "DisplayStatus",
    "Proposal",
    "VoteType",
    # Classifier
    "ExecutionStatus",
    "classify",
    "ready_at",
    # Scheduler
    "ExecutionResult",
    "ExecutionScheduler",
    "ResultStatus",
    "SweepReport",
]
