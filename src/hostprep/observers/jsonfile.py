# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/observers/jsonfile.py
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from .events import BaseEvent, RunFinished

REPORT_SUFFIX = ".report.json"


def report_path_for(events_path: Path) -> Path:
    return events_path.with_name(events_path.stem + REPORT_SUFFIX)


def latest_report(log_dir: Path) -> Optional[dict]:
    """The most recently written run report in ``log_dir``, if any."""
    if not log_dir.is_dir():
        return None
    reports = sorted(log_dir.glob(f"*{REPORT_SUFFIX}"), key=lambda p: p.stat().st_mtime)
    if not reports:
        return None
    return json.loads(reports[-1].read_text())


class JsonFileObserver:
    """
    Machine-readable record of a run.

    ``<run_id>.jsonl`` gets one object per event as it happens. When the run
    finishes, ``<run_id>.report.json`` is written in one piece: outcome,
    abort reason, counts and every step result in execution order.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.report_path = report_path_for(self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        with self.path.open("a") as f:
            json.dump({"type": event.__class__.__name__, **event.dict()}, f)
            f.write("\n")
        if isinstance(event, RunFinished):
            self._write_report(event)

    def _write_report(self, event: RunFinished) -> None:
        report = {
            "run_id": event.run_id,
            "finished": event.ts,
            "outcome": event.outcome,
            "reason": event.reason,
            "counts": {"ok": event.succeeded, "failed": event.failed, "skipped": event.skipped},
            "results": event.results,
        }
        fd, tmp = tempfile.mkstemp(dir=self.report_path.parent, prefix=f".{self.report_path.name}.")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(report, f, indent=2)
                f.write("\n")
            os.replace(tmp, self.report_path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
