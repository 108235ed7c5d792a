# src/hostprep/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single provisioning run

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def now_ts() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def new_ctx(run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": now_ts(),
        "run_id": run_id or str(uuid.uuid4()),
    }


# ---------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RunStarted(BaseEvent):
    steps: List[str]

@dataclass(frozen=True)
class RunFinished(BaseEvent):
    outcome: str                 # "completed" | "aborted"
    reason: Optional[str]
    results: List[Dict[str, Any]]
    succeeded: int
    failed: int
    skipped: int


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepStarted(BaseEvent):
    step_id: str
    description: str

@dataclass(frozen=True)
class StepFinished(BaseEvent):
    step_id: str
    description: str
    status: str                  # "success" | "failure" | "skipped"
    detail: str
    duration_ms: int
