# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/observers/logger.py
from __future__ import annotations

import logging

from .events import BaseEvent, RunFinished, RunStarted, StepFinished, StepStarted

_STEP_LEVEL = {
    "success": logging.INFO,
    "skipped": logging.WARNING,
    "failure": logging.ERROR,
}


class LoggerObserver:
    """
    Mirrors the run into the log file. The level follows the outcome, so a
    failed step or an aborted run also reaches the console handler.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, RunStarted):
            self.logger.info(f"[run {event.run_id}] {len(event.steps)} steps: {', '.join(event.steps)}")
        elif isinstance(event, StepStarted):
            self.logger.debug(f"[step {event.step_id}] started: {event.description}")
        elif isinstance(event, StepFinished):
            level = _STEP_LEVEL.get(event.status, logging.INFO)
            detail = f": {event.detail}" if event.detail else ""
            self.logger.log(level, f"[step {event.step_id}] {event.status} after {event.duration_ms}ms{detail}")
        elif isinstance(event, RunFinished):
            counts = f"ok={event.succeeded} failed={event.failed} skipped={event.skipped}"
            if event.outcome == "aborted":
                self.logger.error(f"[run {event.run_id}] aborted: {event.reason} ({counts})")
            elif event.failed:
                self.logger.warning(f"[run {event.run_id}] completed with failures ({counts})")
            else:
                self.logger.info(f"[run {event.run_id}] completed ({counts})")
        else:
            self.logger.debug(f"[event] {event.__class__.__name__}: {event.dict()}")
