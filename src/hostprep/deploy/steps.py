# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/deploy/steps.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union


class Criticality(str, Enum):
    FATAL = "fatal"          # failure aborts the run
    TOLERANT = "tolerant"    # failure is recorded, run continues


class StepStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepResult:
    step_id: str
    status: StepStatus
    detail: str = ""
    description: str = ""

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.SUCCESS


# An action either returns a detail string (success) or a full StepResult,
# and signals failure by raising.
StepAction = Callable[[], Union[str, StepResult, None]]


@dataclass(frozen=True)
class Step:
    """
    One ordered, independently-failable unit of provisioning work.

    idempotency_key: when set, the step runs at most once per host; the
        orchestrator records a marker after success and skips it afterwards.
    requires: ids of earlier steps that must have succeeded, otherwise the
        step is skipped as blocked.
    """

    id: str
    description: str
    action: StepAction
    idempotency_key: Optional[str] = None
    criticality: Criticality = Criticality.TOLERANT
    requires: Tuple[str, ...] = ()

    @property
    def fatal(self) -> bool:
        return self.criticality is Criticality.FATAL
