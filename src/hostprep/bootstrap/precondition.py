# src/hostprep/bootstrap/precondition.py
from __future__ import annotations

import os
from typing import Callable, Optional

from ..errors import InsufficientPrivilege


class PreconditionCheck:
    """Refuses to go further unless running with an effective uid of 0."""

    def __init__(self, geteuid: Optional[Callable[[], int]] = None):
        self.geteuid = geteuid or os.geteuid

    def check(self) -> None:
        euid = self.geteuid()
        if euid != 0:
            raise InsufficientPrivilege(f"Please run as root (effective uid is {euid}).")

    def __call__(self) -> str:
        self.check()
        return "running as root"
