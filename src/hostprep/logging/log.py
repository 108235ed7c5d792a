# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/hostprep/logging/log.py

from __future__ import annotations

import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

LOG_PREFIX = "hostprep"

# run logs name users and hosts; keep them away from unprivileged readers
DIR_MODE = 0o750
FILE_MODE = 0o640


def run_log_name(run_id: str, started: datetime) -> str:
    return f"{LOG_PREFIX}-{started.strftime('%Y%m%d-%H%M%S')}-{run_id}.log"


def latest_run_log(log_dir: Path) -> Optional[Path]:
    """Most recent run log in ``log_dir`` (names sort by start time)."""
    if not log_dir.is_dir():
        return None
    logs = sorted(log_dir.glob(f"{LOG_PREFIX}-*.log"))
    return logs[-1] if logs else None


def init_logging(
    *,
    log_dir: Path,
    run_id: Optional[str] = None,
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Point the ``hostprep`` logger at one run:

      - ``<log_dir>/hostprep-<ts>-<run_id>.log`` gets the full DEBUG trace,
        including every command hostprep runs and its exit status
      - stderr only gets warnings and errors, so the checklist on stdout stays
        readable; ``--verbose`` lowers it to DEBUG

    Returns ``(logger, run_id, log_path)``; observers reuse the run_id.
    """
    run_id = run_id or str(uuid.uuid4())

    log_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    log_path = log_dir / run_log_name(run_id, datetime.now(timezone.utc))
    # create with the final mode up front; FileHandler would use the umask
    os.close(os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, FILE_MODE))

    logger = logging.getLogger(LOG_PREFIX)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if verbose else logging.WARNING)
    ch.setFormatter(logging.Formatter("hostprep: %(levelname)s: %(message)s"))

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.info(f"=== hostprep run {run_id} started on {os.uname().nodename} ===")
    logger.debug(f"log_file={log_path}")

    return logger, run_id, log_path
