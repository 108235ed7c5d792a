# src/hostprep/deploy/session.py
from __future__ import annotations

import logging

from ..bootstrap.precondition import PreconditionCheck
from ..errors import InsufficientPrivilege, UserCancelled
from ..plan.collector import ConfigCollector
from .executor import ExecutionReport, StepOrchestrator

log = logging.getLogger("hostprep")


def provision(
    precheck: PreconditionCheck,
    collector: ConfigCollector,
    orchestrator: StepOrchestrator,
) -> ExecutionReport:
    """
    One provisioning pass: precondition, operator decisions, then the steps.

    Privilege failures and cancellation return an aborted report with no
    results; nothing on the host has been touched at that point.
    """
    try:
        precheck.check()
    except InsufficientPrivilege as e:
        log.error(str(e))
        return ExecutionReport.aborted("insufficient-privilege", str(e))

    try:
        plan = collector.collect()
    except UserCancelled as e:
        return ExecutionReport.aborted("user-cancelled", str(e))

    return orchestrator.run(plan)
