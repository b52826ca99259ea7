"""Plan execution on a bounded worker pool.

Steps run concurrently, limited by ``jobs``.  A step that writes under a
directory created by the plan waits until that directory's ``MAKE_DIR``
step has finished (the directory-readiness barrier).  Steps are submitted
in plan order, and the pool takes work in submission order, so a waiting
step's parent has always been picked up already and the wait cannot
deadlock.

Failures are per step: they are recorded in the :class:`TransferReport`
and never stop the remaining steps.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from .exceptions import DriveError, PartialFailureError
from .hierarchy import Hierarchy
from .plan import StepAction, TransferPlan, TransferStep, _ancestors

__all__ = ["DEFAULT_JOBS", "StepOutcome", "StepStatus", "TransferReport", "execute_plan"]

logger = logging.getLogger(__name__)

DEFAULT_JOBS = 4


class StepStatus(str, Enum):
    """Outcome of a step: ``DONE``, ``SKIPPED`` or ``FAILED``."""
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """What happened to one :class:`~drivesync.plan.TransferStep`.

    Attributes:
        step: The plan step.
        status: :class:`StepStatus` value.
        error: Human-readable reason for ``SKIPPED`` and ``FAILED``.
    """
    step: TransferStep
    status: StepStatus
    error: str | None = None


@dataclass
class TransferReport:
    """Outcomes of an executed plan, in plan order.

    Attributes:
        outcomes: One :class:`StepOutcome` per executed or skipped step.
    """
    outcomes: list[StepOutcome] = field(default_factory=list)

    def _with_status(self, status: StepStatus) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def done(self) -> list[StepOutcome]:
        return self._with_status(StepStatus.DONE)

    @property
    def failed(self) -> list[StepOutcome]:
        return self._with_status(StepStatus.FAILED)

    @property
    def skipped(self) -> list[StepOutcome]:
        return self._with_status(StepStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        """``True`` when every step completed."""
        return not self.failed and not self.skipped

    @property
    def files_copied(self) -> int:
        return sum(1 for o in self.done if o.step.action is StepAction.COPY)

    @property
    def bytes_copied(self) -> int:
        return sum(o.step.source.size or 0 for o in self.done
                   if o.step.action is StepAction.COPY)

    def raise_for_failures(self) -> None:
        """Raise :class:`~drivesync.exceptions.PartialFailureError` unless :attr:`ok`."""
        if not self.ok:
            raise PartialFailureError(self)


class _DirBarrier:
    """Readiness signal for each directory a plan creates, keyed by relpath."""

    def __init__(self, relpaths: Iterable[str]):
        self._events = {p: threading.Event() for p in relpaths}
        self._ready: dict[str, bool] = {}

    def mark(self, relpath: str, ok: bool) -> None:
        self._ready[relpath] = ok
        self._events[relpath].set()

    def wait(self, relpath: str) -> bool:
        """Block until *relpath* is settled; return whether it was created.

        Directories the plan does not create count as ready.
        """
        event = self._events.get(relpath)
        if event is None:
            return True
        event.wait()
        return self._ready[relpath]


def _run_step(step: TransferStep, source: Hierarchy, dest: Hierarchy,
              barrier: _DirBarrier) -> StepOutcome:
    created = False
    try:
        for ancestor in _ancestors(step.relpath):
            if not barrier.wait(ancestor):
                return StepOutcome(step, StepStatus.FAILED,
                                   f"parent directory not created: {ancestor}")
        try:
            if step.action is StepAction.MAKE_DIR:
                dest.make_dir(step.target, exist_ok=True)
            else:
                with source.get_file(step.source.path) as stream:
                    dest.put_file(step.target, stream, modified=step.source.modified)
        except (DriveError, OSError) as exc:
            logger.debug("%s %s failed: %s", step.action, step.target, exc)
            return StepOutcome(step, StepStatus.FAILED, str(exc))
        created = True
        logger.debug("%s %s", step.action, step.target)
        return StepOutcome(step, StepStatus.DONE)
    finally:
        if step.action is StepAction.MAKE_DIR:
            barrier.mark(step.relpath, created)


def execute_plan(
    plan: TransferPlan,
    source: Hierarchy,
    dest: Hierarchy,
    *,
    jobs: int = DEFAULT_JOBS,
    on_outcome: Callable[[StepOutcome], None] | None = None,
) -> TransferReport:
    """Run *plan*, reading from *source* and writing to *dest*.

    Args:
        plan: Plan from :func:`~drivesync.plan.plan_transfer`.
        source: Hierarchy the plan's source entries live in.
        dest: Hierarchy the plan writes to.
        jobs: Maximum number of steps running at once.
        on_outcome: Called from the calling thread as each step settles.

    Returns:
        A :class:`TransferReport` with one outcome per step, in plan order.

    On ``KeyboardInterrupt`` pending steps are cancelled, running steps are
    allowed to finish, and the interrupt is re-raised.  Nothing is rolled
    back.
    """
    if jobs < 1:
        raise ValueError(f"jobs must be at least 1, got {jobs}")

    barrier = _DirBarrier(s.relpath for s in plan.mkdirs)
    outcomes: list[StepOutcome | None] = [None] * len(plan)

    def settle(index: int, outcome: StepOutcome) -> None:
        outcomes[index] = outcome
        if on_outcome is not None:
            on_outcome(outcome)

    pool = ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="drivesync")
    try:
        futures = {}
        for index, step in enumerate(plan):
            if step.action is StepAction.SKIP:
                settle(index, StepOutcome(step, StepStatus.SKIPPED, step.reason))
                continue
            futures[pool.submit(_run_step, step, source, dest, barrier)] = index
        for future in as_completed(futures):
            settle(futures[future], future.result())
    except KeyboardInterrupt:
        logger.warning("Interrupted: waiting for running steps to finish")
        pool.shutdown(wait=True, cancel_futures=True)
        raise
    finally:
        pool.shutdown(wait=True)

    return TransferReport([o for o in outcomes if o is not None])
