# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/observers/console.py
from __future__ import annotations

from typing import IO, Optional

import typer

from .events import BaseEvent, RunFinished, RunStarted, StepFinished, StepStarted

ICON_SUCCESS = "✔"
ICON_FAILURE = "✖"
ICON_SKIPPED = "-"

_STYLE = {
    "success": (ICON_SUCCESS, typer.colors.GREEN),
    "failure": (ICON_FAILURE, typer.colors.RED),
    "skipped": (ICON_SKIPPED, typer.colors.YELLOW),
}


class ChecklistReporter:
    """
    Live checklist for a provisioning run.

    Each step is printed as `` [ ] description...`` when it starts and the
    same line is rewritten with its terminal marker when it finishes. The
    final summary repeats every result in execution order.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream
        self._pending: Optional[str] = None

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, RunStarted):
            self._echo("Performing actions:", fg=typer.colors.CYAN, bold=True)
        elif isinstance(event, StepStarted):
            self.on_step_start(event)
        elif isinstance(event, StepFinished):
            self.on_step_result(event)
        elif isinstance(event, RunFinished):
            self.on_final_report(event)

    def on_step_start(self, event: StepStarted) -> None:
        self._pending = event.step_id
        self._echo(f" [ ] {event.description}... ", nl=False)

    def on_step_result(self, event: StepFinished) -> None:
        icon, colour = _STYLE[event.status]
        # rewrite the pending line in place
        prefix = "\r" if self._pending == event.step_id else ""
        self._pending = None
        self._echo(f"{prefix} [{icon}] {self._line(event.description, event.detail)}", fg=colour)

    def on_final_report(self, event: RunFinished) -> None:
        if self._pending is not None:
            self._echo("")
            self._pending = None

        self._echo("=======================================", fg=typer.colors.CYAN)
        self._echo("     PROVISIONING REPORT", fg=typer.colors.CYAN, bold=True)
        self._echo("=======================================", fg=typer.colors.CYAN)
        for r in event.results:
            icon, colour = _STYLE[r["status"]]
            label = r.get("description") or r["step_id"]
            self._echo(f" [{icon}] {self._line(label, r['detail'])}", fg=colour)

        counts = f"ok={event.succeeded} failed={event.failed} skipped={event.skipped}"
        if event.outcome == "completed":
            colour = typer.colors.GREEN if event.failed == 0 else typer.colors.YELLOW
            self._echo(f"Outcome: completed ({counts})", fg=colour, bold=True)
        else:
            self._echo(f"Outcome: aborted: {event.reason} ({counts})", fg=typer.colors.RED, bold=True)

    @staticmethod
    def _line(label: str, detail: str) -> str:
        return f"{label}: {detail}" if detail else label

    def _echo(self, message: str, *, nl: bool = True, **style) -> None:
        typer.secho(message, file=self.stream, nl=nl, **style)
