# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/deploy/guard.py
from __future__ import annotations

import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Protocol

from ..errors import MarkerWriteError

log = logging.getLogger("hostprep")

_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


class IdempotencyGuard(Protocol):
    def is_done(self, key: str) -> bool: ...

    def mark_done(self, key: str) -> None: ...


class FileMarkerStore:
    """
    One file per completed one-time action under ``root``.

    Markers are only ever created; removing one is a manual operator
    decision that re-arms the guarded action.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _KEY.match(key) or key in (".", ".."):
            raise ValueError(f"invalid idempotency key: {key!r}")
        return self.root / key

    def is_done(self, key: str) -> bool:
        return self._path(key).is_file()

    def mark_done(self, key: str) -> None:
        path = self._path(key)
        if path.is_file():
            log.debug(f"marker {key} already present")
            return

        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{key}.")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(stamp + "\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            _fsync_dir(self.root)
        except OSError as e:
            raise MarkerWriteError(f"could not write marker {path}: {e}") from e

        log.info(f"marker {key} recorded at {path}")

    def markers(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )


def _fsync_dir(path: Path) -> None:
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
