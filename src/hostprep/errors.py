# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/errors.py
from __future__ import annotations

from typing import Optional, Sequence


class HostprepError(RuntimeError):
    """Base class for hostprep failures."""


class FatalPrecondition(HostprepError):
    """The invocation environment cannot be provisioned from."""


class InsufficientPrivilege(FatalPrecondition):
    """Raised when hostprep is not running with root privileges."""


class UserCancelled(HostprepError):
    """The operator declined to continue. Not an error for exit-status purposes."""


class ConfigError(HostprepError):
    """Raised when the configuration file cannot be loaded or validated."""


class FetchError(HostprepError):
    """Raised when the canonical hardening config cannot be retrieved."""


class MarkerWriteError(HostprepError):
    """Raised when an idempotency marker could not be durably recorded."""


class UnsafePathError(HostprepError):
    """A path inside a user-owned directory is a symlink or not a plain file."""


class CommandError(HostprepError):
    """
    A system command exited non-zero, timed out or could not be started.
    returncode is None for timeouts and missing executables.
    """

    def __init__(self, cmd: Sequence[str], returncode: Optional[int], stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        cmd_str = " ".join(self.cmd)
        if returncode is None:
            msg = f"`{cmd_str}` did not complete"
        else:
            msg = f"`{cmd_str}` exited {returncode}"
        if stderr.strip():
            msg += f": {stderr.strip().splitlines()[-1]}"
        super().__init__(msg)
