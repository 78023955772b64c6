"""
Best-effort batches for cleanup work.

A cascading delete is a list of independent operations where one failure must
not stop the rest. ``run_best_effort`` executes them in order and reports
what failed instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

import structlog

log = structlog.get_logger()

Operation = tuple[str, Callable[[], Awaitable[object]]]


@dataclass(frozen=True)
class BatchFailure:
    item_id: str
    error: str


@dataclass
class BatchSummary:
    attempted: int = 0
    succeeded: int = 0
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def merge(self, other: "BatchSummary") -> "BatchSummary":
        self.attempted += other.attempted
        self.succeeded += other.succeeded
        self.failures.extend(other.failures)
        return self

    def as_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failures": [{"itemId": f.item_id, "error": f.error} for f in self.failures],
        }


async def run_best_effort(label: str, operations: Iterable[Operation]) -> BatchSummary:
    """Run each operation sequentially, collecting failures instead of raising."""
    summary = BatchSummary()
    for item_id, operation in operations:
        summary.attempted += 1
        try:
            await operation()
        except Exception as exc:
            error = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
            log.warning(f"{label}.item_failed", item_id=item_id, error=error)
            summary.failures.append(BatchFailure(item_id=item_id, error=error))
        else:
            summary.succeeded += 1
    if summary.failures:
        log.warning(f"{label}.partial_failure", attempted=summary.attempted, failed=len(summary.failures))
    return summary
