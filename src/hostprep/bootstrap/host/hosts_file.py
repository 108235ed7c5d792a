# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/bootstrap/host/hosts_file.py
from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

log = logging.getLogger("hostprep")


def render_loopback_alias(text: str, hostname: str, address: str = "127.0.1.1") -> str:
    """
    Point the loopback alias line at ``hostname``.

    The first ``address`` line is replaced in place; if there is none the
    entry is appended. Any further lines for the same address are dropped so
    the alias is never duplicated.
    """
    entry = f"{address} {hostname}"
    pattern = re.compile(rf"^\s*{re.escape(address)}(\s|$)")

    out = []
    replaced = False
    for ln in text.splitlines():
        if pattern.match(ln):
            if not replaced:
                out.append(entry)
                replaced = True
            continue
        out.append(ln)

    if not replaced:
        out.append(entry)

    return "\n".join(out) + "\n"


def update_loopback_alias(hosts_file: Path, hostname: str, address: str = "127.0.1.1") -> bool:
    """Rewrite ``hosts_file`` atomically. Returns False when it was already correct."""
    text = hosts_file.read_text() if hosts_file.exists() else ""
    new = render_loopback_alias(text, hostname, address)
    if new == text:
        log.debug(f"{hosts_file} already maps {address} to {hostname}")
        return False

    mode = hosts_file.stat().st_mode & 0o7777 if hosts_file.exists() else 0o644
    fd, tmp = tempfile.mkstemp(dir=hosts_file.parent, prefix=f".{hosts_file.name}.")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(new)
        os.chmod(tmp, mode)
        os.replace(tmp, hosts_file)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise

    log.info(f"{hosts_file}: {address} -> {hostname}")
    return True
