# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/cli/app.py
from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Optional

import typer

from hostprep.bootstrap.host.accounts import AccountDatabase
from hostprep.bootstrap.host.actions import HostActions
from hostprep.bootstrap.precondition import PreconditionCheck
from hostprep.config.loader import load_config
from hostprep.config.models import ProvisionConfig
from hostprep.deploy.config_sync import ConfigSyncStep, list_backups
from hostprep.deploy.executor import EXIT_PRECONDITION, StepOrchestrator
from hostprep.deploy.guard import FileMarkerStore
from hostprep.deploy.planner import build_steps
from hostprep.deploy.session import provision as run_provisioning
from hostprep.errors import ConfigError, InsufficientPrivilege
from hostprep.execution.runner import CommandRunner
from hostprep.fetch.http import HttpFetcher
from hostprep.logging.log import init_logging, latest_run_log
from hostprep.observers.console import ChecklistReporter
from hostprep.observers.jsonfile import JsonFileObserver, latest_report
from hostprep.observers.logger import LoggerObserver
from hostprep.plan.collector import ConfigCollector
from hostprep.plan.prompts import TyperPrompter


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="hostprep: one-time first-boot hardening for Debian hosts")

EXIT_CONFIG = 4

BANNER = r"""
 _               _
| |__   ___  ___| |_ _ __  _ __ ___ _ __
| '_ \ / _ \/ __| __| '_ \| '__/ _ \ '_ \
| | | | (_) \__ \ |_| |_) | | |  __/ |_) |
|_| |_|\___/|___/\__| .__/|_|  \___| .__/
                    |_|            |_|
"""


def _load(config: Optional[Path]) -> ProvisionConfig:
    try:
        return load_config(config)
    except ConfigError as e:
        typer.secho(f"✖ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_CONFIG)


def build_orchestrator(
    cfg: ProvisionConfig,
    *,
    precheck: PreconditionCheck,
    accounts: AccountDatabase,
    observers: list,
    run_id: str,
) -> StepOrchestrator:
    """
    Wire the real collaborators: subprocess runner, HTTP fetcher, file
    markers, and the step builder.
    """
    runner = CommandRunner(timeout=cfg.command_timeout_seconds, label="hostprep")
    actions = HostActions(runner, cfg, accounts)
    sync = ConfigSyncStep(
        url=str(cfg.hardening.url),
        installed=cfg.hardening.path,
        fetcher=HttpFetcher(timeout=cfg.fetch_timeout_seconds),
        validate=actions.validate_sshd,
    )
    build = partial(
        build_steps,
        actions=actions,
        sync=sync,
        preflight=precheck,
        strict_hardening=cfg.hardening.strict,
    )
    return StepOrchestrator(
        build=build,
        guard=FileMarkerStore(cfg.marker_dir),
        observers=observers,
        run_id=run_id,
    )


@app.command()
def provision(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML config file (default: $HOSTPREP_CONFIG or /etc/hostprep/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo the debug log to the console"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Do not ask for confirmation after the summary"
    ),
) -> None:
    """Run one interactive provisioning pass on this host."""
    cfg = _load(config)

    typer.secho(BANNER, fg=typer.colors.CYAN)
    typer.secho("ℹ Starting provisioning…", fg=typer.colors.CYAN, bold=True)

    precheck = PreconditionCheck()
    try:
        precheck.check()
    except InsufficientPrivilege as e:
        typer.secho(f"✖ {e}", fg=typer.colors.RED, bold=True, err=True)
        raise typer.Exit(EXIT_PRECONDITION)

    logger, run_id, log_path = init_logging(log_dir=cfg.log_dir, verbose=verbose)

    accounts = AccountDatabase()
    collector = ConfigCollector(
        TyperPrompter(),
        user_exists=accounts.exists,
        confirm_summary=cfg.confirm_summary and not yes,
    )
    observers = [
        ChecklistReporter(),
        LoggerObserver(logger),
        JsonFileObserver(cfg.log_dir / f"{run_id}.jsonl"),
    ]
    orchestrator = build_orchestrator(
        cfg,
        precheck=precheck,
        accounts=accounts,
        observers=observers,
        run_id=run_id,
    )

    report = run_provisioning(precheck, collector, orchestrator)

    if report.reason is not None and report.reason.kind == "user-cancelled":
        typer.secho(f"ℹ {report.reason.detail}", fg=typer.colors.CYAN, bold=True)
    else:
        typer.secho(f"ℹ Log: {log_path}", fg=typer.colors.CYAN)

    raise typer.Exit(report.exit_code)


@app.command()
def status(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
) -> None:
    """Show recorded one-time actions, hardening config backups and the last run."""
    cfg = _load(config)

    markers = FileMarkerStore(cfg.marker_dir).markers()
    typer.secho(f"Markers ({cfg.marker_dir}):", bold=True)
    if not markers:
        typer.echo("  none")
    for m in markers:
        stamp = (cfg.marker_dir / m).read_text().strip()
        typer.echo(f"  {m}  {stamp}")

    backups = list_backups(cfg.hardening.path)
    typer.secho(f"Hardening config ({cfg.hardening.path}):", bold=True)
    typer.echo(f"  installed: {'yes' if cfg.hardening.path.exists() else 'no'}")
    typer.echo(f"  backups: {len(backups)}")
    for b in backups:
        typer.echo(f"    {b.name}")

    typer.secho(f"Last run ({cfg.log_dir}):", bold=True)
    report = latest_report(cfg.log_dir)
    if report is None:
        typer.echo("  none")
    else:
        c = report["counts"]
        reason = f": {report['reason']}" if report["reason"] else ""
        typer.echo(
            f"  {report['outcome']}{reason} at {report['finished']} "
            f"(ok={c['ok']} failed={c['failed']} skipped={c['skipped']})"
        )
    last_log = latest_run_log(cfg.log_dir)
    if last_log is not None:
        typer.echo(f"  log: {last_log}")


if __name__ == "__main__":
    app()
