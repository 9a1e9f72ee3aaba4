"""
Execution Scheduler

One sweep walks proposal ids 1..count, classifies each, and submits
executeProposal for the ones whose delay has elapsed. Every id is processed
in isolation: a failure is captured as an ``error`` result and the sweep
moves on.

Executed and still-open proposals are left out of the report. Because the
executed flag is checked first, a second sweep over settled proposals does
nothing. Two overlapping sweeps can both see executed == false for the same
id; the DAO rejects the second executeProposal and that id reports
``error`` in the slower sweep.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..logger import get_logger
from .classifier import ExecutionStatus, classify, ready_at

if TYPE_CHECKING:
    from ..ledger.base import Ledger

logger = get_logger(__name__)


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ResultStatus(str, Enum):
    """Statuses that appear in a sweep report."""
    REJECTED = "rejected"
    WAITING_DELAY = "waiting_delay"
    EXECUTED = "executed"
    ERROR = "error"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome for one proposal in one sweep."""
    proposal_id: int
    status: ResultStatus
    tx_hash: Optional[str] = None
    detail: Optional[str] = None
    ready_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.proposal_id, "status": self.status.value}
        if self.tx_hash is not None:
            out["hash"] = self.tx_hash
        if self.detail is not None:
            out["error"] = self.detail
        if self.ready_at is not None:
            out["readyAt"] = self.ready_at
        return out


@dataclass
class SweepReport:
    checked: int
    results: List[ExecutionResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def by_status(self, status: ResultStatus) -> List[ExecutionResult]:
        return [r for r in self.results if r.status == status]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "checked": self.checked,
            "results": [r.to_dict() for r in self.results],
            "timestamp": _iso(self.timestamp),
        }


class ExecutionScheduler:
    """
    Sweeps all proposals and executes the eligible ones.

    Args:
        ledger: Ledger to read proposals from and submit executions to
        clock: Returns unix seconds; read once per sweep
        concurrency: Proposals processed at once (1 = strictly sequential)
    """

    def __init__(
        self,
        ledger: "Ledger",
        clock: Callable[[], float] = time.time,
        concurrency: int = 1,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._ledger = ledger
        self._clock = clock
        self._concurrency = concurrency

    async def sweep(self) -> SweepReport:
        """
        One full pass. Failing to read the proposal count or the execution
        delay aborts the sweep (the exception propagates); anything that goes
        wrong for a single id does not.
        """
        total = await self._ledger.get_proposal_count()
        execution_delay = await self._ledger.get_execution_delay()
        now = self._clock()

        logger.info(f"[Daemon] Checking {total} proposals...")

        semaphore = asyncio.Semaphore(self._concurrency)

        async def bounded(proposal_id: int) -> Optional[ExecutionResult]:
            async with semaphore:
                return await self._process(proposal_id, now, execution_delay)

        # gather keeps argument order, so results stay in ascending id order
        outcomes = await asyncio.gather(*(bounded(i) for i in range(1, total + 1)))
        results = [r for r in outcomes if r is not None]

        executed = sum(1 for r in results if r.status == ResultStatus.EXECUTED)
        errors = sum(1 for r in results if r.status == ResultStatus.ERROR)
        logger.info(
            f"[Daemon] Sweep done: {total} checked, {executed} executed, {errors} errors"
        )
        return SweepReport(checked=total, results=results)

    async def _process(
        self,
        proposal_id: int,
        now: float,
        execution_delay: int,
    ) -> Optional[ExecutionResult]:
        """Classify and maybe execute one id. Never raises."""
        try:
            proposal = await self._ledger.get_proposal(proposal_id)
            status = classify(proposal, now, execution_delay)

            if status in (ExecutionStatus.ALREADY_EXECUTED, ExecutionStatus.PENDING):
                return None

            if status == ExecutionStatus.REJECTED:
                return ExecutionResult(proposal_id, ResultStatus.REJECTED)

            if status == ExecutionStatus.WAITING_DELAY:
                eta = ready_at(proposal, execution_delay)
                return ExecutionResult(
                    proposal_id,
                    ResultStatus.WAITING_DELAY,
                    detail=f"Ready at {_iso(datetime.fromtimestamp(eta, tz=timezone.utc))}",
                    ready_at=eta,
                )

            logger.info(f"[Daemon] Executing proposal #{proposal_id}...")
            handle = await self._ledger.submit_execute(proposal_id)
            receipt = await self._ledger.await_finality(handle)
            logger.info(f"[Daemon] Proposal #{proposal_id} executed. Hash: {receipt.tx_hash}")
            return ExecutionResult(proposal_id, ResultStatus.EXECUTED, tx_hash=receipt.tx_hash)

        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"[Daemon] Error executing proposal #{proposal_id}: {message}")
            return ExecutionResult(proposal_id, ResultStatus.ERROR, detail=message)
