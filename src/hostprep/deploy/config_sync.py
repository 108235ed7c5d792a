# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/deploy/config_sync.py
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from ..errors import FetchError
from .steps import StepResult, StepStatus

log = logging.getLogger("hostprep")

STEP_ID = "sync-hardening-config"


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes: ...


class SyncOutcome(str, Enum):
    INSTALLED = "installed"    # nothing was on disk
    UNCHANGED = "unchanged"    # byte-identical, no write
    UPDATED = "updated"        # backed up then replaced


def backup_path_for(installed: Path, now: datetime) -> Path:
    """
    ``<installed>.bak.<YYYYmmddHHMMSS>``, with ``.1``, ``.2``... appended when
    that name is taken so an earlier backup is never overwritten.
    """
    base = installed.with_name(f"{installed.name}.bak.{now.strftime('%Y%m%d%H%M%S')}")
    candidate = base
    n = 0
    while candidate.exists():
        n += 1
        candidate = base.with_name(f"{base.name}.{n}")
    return candidate


def list_backups(installed: Path) -> List[Path]:
    if not installed.parent.is_dir():
        return []
    return sorted(installed.parent.glob(f"{installed.name}.bak.*"))


def _atomic_write(path: Path, content: bytes, mode: int = 0o644) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class ConfigSyncStep:
    """
    Reconcile the installed hardening drop-in with the canonical remote copy.

    absent     -> install the fetched bytes
    identical  -> leave the file alone
    diverged   -> copy the installed file to a timestamped backup, then
                  replace it

    Whatever the outcome, the resulting configuration is syntax-checked so a
    dependent restart never runs against a broken config.
    """

    def __init__(
        self,
        *,
        url: str,
        installed: Path,
        fetcher: Fetcher,
        validate: Callable[[], None],
        clock: Optional[Callable[[], datetime]] = None,
        step_id: str = STEP_ID,
    ):
        self.url = url
        self.installed = Path(installed)
        self.fetcher = fetcher
        self.validate = validate
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.step_id = step_id

        self.last_outcome: Optional[SyncOutcome] = None
        self.last_backup: Optional[Path] = None

    def _result(self, status: StepStatus, detail: str) -> StepResult:
        return StepResult(step_id=self.step_id, status=status, detail=detail)

    def apply(self) -> StepResult:
        self.last_outcome = None
        self.last_backup = None

        try:
            canonical = self.fetcher.fetch(self.url)
        except FetchError as e:
            return self._result(StepStatus.FAILURE, f"fetch failed: {e}")

        try:
            outcome = self._reconcile(canonical)
        except OSError as e:
            log.exception(f"writing {self.installed} failed")
            return self._result(StepStatus.FAILURE, f"install failed: {e}")
        self.last_outcome = outcome

        try:
            self.validate()
        except Exception as e:
            log.error(f"validation of {self.installed} failed: {e}")
            return self._result(StepStatus.FAILURE, f"{outcome.value}, validation failed: {e}")

        detail = outcome.value
        if self.last_backup is not None:
            detail += f" (backup {self.last_backup.name})"
        return self._result(StepStatus.SUCCESS, detail)

    def _reconcile(self, canonical: bytes) -> SyncOutcome:
        if not self.installed.exists():
            _atomic_write(self.installed, canonical)
            log.info(f"installed {self.installed} ({len(canonical)} bytes)")
            return SyncOutcome.INSTALLED

        current = self.installed.read_bytes()
        if current == canonical:
            log.info(f"{self.installed} is up to date")
            return SyncOutcome.UNCHANGED

        backup = backup_path_for(self.installed, self.clock())
        shutil.copy2(self.installed, backup)
        self.last_backup = backup
        log.info(f"backed up {self.installed} to {backup}")

        _atomic_write(self.installed, canonical)
        log.info(f"updated {self.installed} ({len(canonical)} bytes)")
        return SyncOutcome.UPDATED

    __call__ = apply
