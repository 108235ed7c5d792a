# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/execution/runner.py
from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

from ..errors import CommandError

Cmd = Sequence[Union[str, "os.PathLike[str]"]]

log = logging.getLogger("hostprep")


@dataclass
class CommandRunner:
    """
    Runs a single local command to completion.

    Every failure mode (non-zero exit, timeout, missing binary) is raised as
    CommandError so callers only deal with one exception type.
    """

    timeout: Optional[float] = 900.0
    label: Optional[str] = None

    def run(
        self,
        cmd: Cmd,
        *,
        input: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        label = self.label or "cmd"
        argv = [str(c) for c in cmd]
        cmd_str = " ".join(argv)

        # stdin may carry secrets (chpasswd); only its presence is logged
        log.debug(f"[{label}] $ {cmd_str}" + (" <stdin>" if input is not None else ""))

        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)

        start = time.time()
        try:
            result = subprocess.run(
                argv,
                input=input,
                capture_output=True,
                text=True,
                env=run_env,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            log.error(f"[{label}] timed out after {self.timeout}s: {cmd_str}")
            raise CommandError(argv, None, f"timed out after {self.timeout}s") from e
        except OSError as e:
            log.error(f"[{label}] could not start {argv[0]}: {e}")
            raise CommandError(argv, None, str(e)) from e

        duration = time.time() - start

        if result.stdout:
            log.debug(f"[{label}][stdout]\n{result.stdout.rstrip()}")
        if result.stderr:
            log.debug(f"[{label}][stderr]\n{result.stderr.rstrip()}")
        log.debug(f"[{label}][exit {result.returncode}] ({duration:.2f}s)")

        if check and result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stderr or "")
        return result
