# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Callable, List, Optional, Set

from ..errors import MarkerWriteError
from ..plan.models import Plan
from .guard import IdempotencyGuard
from .steps import Step, StepResult, StepStatus

# Observer bits
from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    RunStarted,
    RunFinished,
    StepStarted,
    StepFinished,
)

log = logging.getLogger("hostprep")

EXIT_OK = 0
EXIT_PRECONDITION = 1
EXIT_ABORTED = 3


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class AbortReason:
    kind: str                       # "user-cancelled" | "insufficient-privilege" | "step-failure"
    detail: str = ""
    step_id: Optional[str] = None

    def __str__(self) -> str:
        if self.kind == "step-failure":
            return f"step-failure({self.step_id})"
        return self.kind


@dataclass
class ExecutionReport:
    results: List[StepResult] = field(default_factory=list)
    outcome: RunOutcome = RunOutcome.COMPLETED
    reason: Optional[AbortReason] = None

    @classmethod
    def aborted(cls, kind: str, detail: str = "") -> "ExecutionReport":
        return cls(outcome=RunOutcome.ABORTED, reason=AbortReason(kind=kind, detail=detail))

    def add(self, result: StepResult) -> None:
        self.results.append(result)

    def count(self, status: StepStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    def result_for(self, step_id: str) -> Optional[StepResult]:
        return next((r for r in self.results if r.step_id == step_id), None)

    @property
    def exit_code(self) -> int:
        if self.outcome is RunOutcome.COMPLETED:
            return EXIT_OK
        if self.reason is None or self.reason.kind == "step-failure":
            return EXIT_ABORTED
        if self.reason.kind == "insufficient-privilege":
            return EXIT_PRECONDITION
        return EXIT_OK   # user-cancelled

    def summary(self) -> str:
        ok = self.count(StepStatus.SUCCESS)
        failed = self.count(StepStatus.FAILURE)
        skipped = self.count(StepStatus.SKIPPED)
        return f"OK={ok} FAILED={failed} SKIPPED={skipped}"


class StepOrchestrator:
    """
    Runs the step sequence built from a Plan, one step at a time.

    - guarded steps whose marker exists are skipped without running
    - steps whose prerequisites did not succeed are skipped as blocked
    - tolerant failures are recorded and the run continues (no rollback)
    - a fatal failure stops the run; later steps never appear in the report
    """

    def __init__(
        self,
        build: Callable[[Plan], List[Step]],
        guard: IdempotencyGuard,
        observers: Optional[List] = None,
        run_id: Optional[str] = None,
    ):
        self.build = build
        self.guard = guard
        self.bus = EventBus(observers or [])
        self.run_id = run_id

    def run(self, plan: Plan) -> ExecutionReport:
        steps = self.build(plan)
        log.debug(f"built steps: {[s.id for s in steps]}")
        return self.execute(steps)

    def execute(self, steps: List[Step]) -> ExecutionReport:
        report = ExecutionReport()
        run_ctx = new_ctx(self.run_id)
        succeeded: Set[str] = set()

        self.bus.emit(RunStarted(steps=[s.id for s in steps], **run_ctx))

        for step in steps:
            self.bus.emit(StepStarted(step_id=step.id, description=step.description, **run_ctx))
            t0 = time.time()
            result = self._run_step(step, succeeded)
            duration_ms = int((time.time() - t0) * 1000)

            report.add(result)
            if result.ok:
                succeeded.add(step.id)
            self.bus.emit(
                StepFinished(
                    step_id=step.id,
                    description=step.description,
                    status=result.status.value,
                    detail=result.detail,
                    duration_ms=duration_ms,
                    **run_ctx,
                )
            )

            if step.fatal and result.status is StepStatus.FAILURE:
                log.error(f"fatal step {step.id} failed: {result.detail}; aborting run")
                report.outcome = RunOutcome.ABORTED
                report.reason = AbortReason(kind="step-failure", detail=result.detail, step_id=step.id)
                break

        self.finish(report, run_ctx)
        return report

    def finish(self, report: ExecutionReport, run_ctx: Optional[dict] = None) -> None:
        """Emit the final report to every observer."""
        run_ctx = run_ctx or new_ctx(self.run_id)
        self.bus.emit(
            RunFinished(
                outcome=report.outcome.value,
                reason=str(report.reason) if report.reason else None,
                results=[{**asdict(r), "status": r.status.value} for r in report.results],
                succeeded=report.count(StepStatus.SUCCESS),
                failed=report.count(StepStatus.FAILURE),
                skipped=report.count(StepStatus.SKIPPED),
                **run_ctx,
            )
        )
        log.info(f"run {report.outcome.value}: {report.summary()}")

    def _run_step(self, step: Step, succeeded: Set[str]) -> StepResult:
        def result(status: StepStatus, detail: str) -> StepResult:
            return StepResult(step_id=step.id, status=status, detail=detail, description=step.description)

        blocked = [dep for dep in step.requires if dep not in succeeded]
        if blocked:
            log.warning(f"step {step.id} blocked by {blocked}")
            return result(StepStatus.SKIPPED, f"blocked by {', '.join(blocked)}")

        key = step.idempotency_key
        if key is not None and self.guard.is_done(key):
            log.info(f"step {step.id} already done (marker {key})")
            return result(StepStatus.SKIPPED, "already done")

        log.info(f"step {step.id}: {step.description}")
        try:
            out = step.action()
        except Exception as e:
            log.error(f"step {step.id} failed: {e}")
            return result(StepStatus.FAILURE, str(e) or e.__class__.__name__)

        if isinstance(out, StepResult):
            res = result(out.status, out.detail)
        else:
            res = result(StepStatus.SUCCESS, out or "done")

        if res.status is StepStatus.FAILURE:
            log.error(f"step {step.id} failed: {res.detail}")
            return res

        if key is not None and res.ok:
            try:
                self.guard.mark_done(key)
            except MarkerWriteError as e:
                log.error(f"step {step.id} succeeded but its marker was not recorded: {e}")
                return result(
                    StepStatus.FAILURE,
                    f"succeeded but marker '{key}' could not be written: {e}",
                )
        return res
