# src/hostprep/bootstrap/host/accounts.py
from __future__ import annotations

import pwd
from pathlib import Path
from typing import Optional


class AccountDatabase:
    """Read-only view of the local passwd database."""

    def exists(self, username: str) -> bool:
        return self._entry(username) is not None

    def home(self, username: str) -> Path:
        entry = self._entry(username)
        if entry is None:
            raise KeyError(f"user '{username}' does not exist")
        return Path(entry.pw_dir)

    def ids(self, username: str) -> tuple[int, int]:
        entry = self._entry(username)
        if entry is None:
            raise KeyError(f"user '{username}' does not exist")
        return entry.pw_uid, entry.pw_gid

    def _entry(self, username: str) -> Optional[pwd.struct_passwd]:
        try:
            return pwd.getpwnam(username)
        except KeyError:
            return None
