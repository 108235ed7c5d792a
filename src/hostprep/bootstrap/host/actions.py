# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/bootstrap/host/actions.py

from __future__ import annotations

import logging
import os
import re
import secrets
import stat
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Protocol

from ...config.models import ProvisionConfig
from ...errors import CommandError, UnsafePathError
from ...plan.models import (
    AppendKey,
    CreateUser,
    ExistingUser,
    ReplaceKey,
    RootAction,
    SetPassword,
)
from .accounts import AccountDatabase
from .hosts_file import update_loopback_alias

log = logging.getLogger("hostprep")

AUTHORIZED_KEYS = "authorized_keys"


class Runner(Protocol):
    def run(self, cmd, *, input=None, env=None, check=True): ...


def prune_moduli(path: Path, min_size: int) -> int:
    """
    Drop DH groups smaller than ``min_size`` bits from an sshd moduli file.
    Comments and blank lines are kept. Returns the number of groups removed.
    """
    kept, removed = [], 0
    for ln in path.read_text().splitlines():
        fields = ln.split()
        if not fields or ln.lstrip().startswith("#"):
            kept.append(ln)
            continue
        try:
            size = int(fields[4])
        except (IndexError, ValueError):
            kept.append(ln)
            continue
        if size >= min_size:
            kept.append(ln)
        else:
            removed += 1

    tmp = path.with_name(path.name + ".safe")
    tmp.write_text("\n".join(kept) + "\n")
    os.replace(tmp, path)
    return removed


def _append_key(existing: str, *, key: str) -> Optional[str]:
    if key in (ln.strip() for ln in existing.splitlines()):
        return None
    sep = "" if not existing or existing.endswith("\n") else "\n"
    return existing + sep + key + "\n"


class HostActions:
    """
    The host mutations a provisioning run performs, one method per step.

    Every method either returns a short detail string or raises (CommandError
    from the runner, OSError from file edits). Methods are safe to re-run.
    """

    def __init__(self, runner: Runner, cfg: ProvisionConfig, accounts: AccountDatabase | None = None):
        self.runner = runner
        self.cfg = cfg
        self.accounts = accounts or AccountDatabase()

    # ------------------ packages & ssh ------------------

    def install_packages(self) -> str:
        env = {"DEBIAN_FRONTEND": "noninteractive"}
        self.runner.run(["apt-get", "update", "-qq"], env=env)
        self.runner.run(["apt-get", "install", "-y", "-qq", *self.cfg.packages], env=env)
        return ", ".join(self.cfg.packages)

    def regenerate_host_keys(self) -> str:
        """
        - delete every existing ssh_host_* key
        - generate fresh RSA 4096 and Ed25519 host keys
        - prune weak moduli
        """
        ssh_dir = self.cfg.ssh_dir
        for old in ssh_dir.glob("ssh_host_*"):
            old.unlink()

        self.runner.run(["ssh-keygen", "-q", "-t", "rsa", "-b", "4096",
                         "-f", str(ssh_dir / "ssh_host_rsa_key"), "-N", ""])
        self.runner.run(["ssh-keygen", "-q", "-t", "ed25519",
                         "-f", str(ssh_dir / "ssh_host_ed25519_key"), "-N", ""])

        moduli = ssh_dir / "moduli"
        if moduli.exists():
            removed = prune_moduli(moduli, self.cfg.min_moduli_size)
            return f"rsa+ed25519, {removed} weak moduli removed"
        return "rsa+ed25519"

    def validate_sshd(self) -> None:
        self.runner.run(["sshd", "-t"])

    def restart_ssh(self) -> str:
        self.runner.run(["systemctl", "restart", self.cfg.ssh_service])
        return f"{self.cfg.ssh_service} restarted"

    # ------------------ disk ------------------

    def expand_partition(self) -> str:
        rootdev = self.runner.run(["findmnt", "/", "-o", "SOURCE", "-n"]).stdout.strip()
        disk = self.runner.run(["lsblk", "-no", "pkname", rootdev]).stdout.strip()
        m = re.search(r"(\d+)$", rootdev)
        if not rootdev or not disk or not m:
            raise RuntimeError(f"cannot determine root partition (device={rootdev!r}, disk={disk!r})")
        partnum = m.group(1)

        grow = self.runner.run(["growpart", f"/dev/{disk}", partnum], check=False)
        if grow.returncode != 0:
            # growpart exits 1 with NOCHANGE when the partition is already full size
            if "NOCHANGE" not in (grow.stdout or "") + (grow.stderr or ""):
                raise CommandError(["growpart", f"/dev/{disk}", partnum], grow.returncode, grow.stderr or "")
            log.info(f"{rootdev} already fills /dev/{disk}")

        self.runner.run(["resize2fs", rootdev])
        return f"{rootdev} grown"

    # ------------------ identity ------------------

    def set_hostname(self, hostname: str) -> str:
        self.runner.run(["hostnamectl", "set-hostname", hostname])
        update_loopback_alias(self.cfg.hosts_file, hostname, self.cfg.loopback_address)
        return f"{self.cfg.loopback_address} {hostname}"

    # ------------------ users ------------------

    def create_user(self, action: CreateUser) -> str:
        u = action.username
        self.runner.run(["useradd", "-m", "-s", self.cfg.login_shell, u])
        if action.add_to_sudo:
            self.runner.run(["usermod", "-aG", self.cfg.sudo_group, u])
        self.runner.run(["chpasswd"], input=f"{u}:{action.password}\n")

        if action.public_key:
            key = action.public_key.strip()
            self._edit_authorized_keys(u, lambda _existing: key + "\n")
            return f"user '{u}' created with key" + (" and sudo" if action.add_to_sudo else "")
        return f"user '{u}' created" + (" with sudo" if action.add_to_sudo else "")

    def update_user(self, action: ExistingUser) -> str:
        """
        Bring an existing account in line: sudo membership first, then the
        chosen authorized_keys change.
        """
        u = action.username
        details = []
        if self.ensure_sudo(u):
            details.append(f"'{u}' added to {self.cfg.sudo_group}")

        ka = action.key_action
        key = getattr(ka, "key", "").strip()
        if isinstance(ka, ReplaceKey):
            self._edit_authorized_keys(u, lambda _existing: key + "\n")
            details.append(f"authorized_keys of '{u}' replaced")
        elif isinstance(ka, AppendKey):
            if self._edit_authorized_keys(u, partial(_append_key, key=key)):
                details.append(f"key appended for '{u}'")
            else:
                details.append(f"key already present for '{u}'")
        elif not details:
            details.append(f"user '{u}' left unchanged")
        return "; ".join(details)

    def ensure_sudo(self, username: str) -> bool:
        """Add ``username`` to the sudo group unless it is already a member."""
        groups = self.runner.run(["id", "-nG", username]).stdout.split()
        if self.cfg.sudo_group in groups:
            return False
        self.runner.run(["usermod", "-aG", self.cfg.sudo_group, username])
        return True

    def _edit_authorized_keys(self, username: str, edit: Callable[[str], Optional[str]]) -> bool:
        """
        Rewrite ``~user/.ssh/authorized_keys`` as ``edit(current)``; ``None``
        means leave it alone.

        The user owns ``.ssh``, so nothing in it is trusted: the directory is
        opened with O_NOFOLLOW and every later open, chmod, chown and rename
        is relative to that descriptor. A symlinked or hard-linked key file is
        refused rather than read or replaced.
        """
        uid, gid = self.accounts.ids(username)
        dfd = self._open_ssh_dir(username)
        try:
            os.fchmod(dfd, 0o700)
            os.fchown(dfd, uid, gid)

            new = edit(self._read_authorized_keys(dfd, username))
            if new is None:
                return False

            tmp = f".{AUTHORIZED_KEYS}.{secrets.token_hex(8)}"
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW, 0o600, dir_fd=dfd)
            try:
                with os.fdopen(fd, "w") as f:
                    os.fchmod(f.fileno(), 0o600)
                    os.fchown(f.fileno(), uid, gid)
                    f.write(new)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, AUTHORIZED_KEYS, src_dir_fd=dfd, dst_dir_fd=dfd)
            except BaseException:
                try:
                    os.unlink(tmp, dir_fd=dfd)
                except FileNotFoundError:
                    pass
                raise
            return True
        finally:
            os.close(dfd)

    def _open_ssh_dir(self, username: str) -> int:
        ssh_dir = self.accounts.home(username) / ".ssh"
        try:
            os.mkdir(ssh_dir, 0o700)
        except FileExistsError:
            pass
        try:
            return os.open(ssh_dir, os.O_RDONLY | os.O_DIRECTORY | os.O_NOFOLLOW)
        except OSError as e:
            # ELOOP for a symlink, ENOTDIR for anything that is not a directory
            raise UnsafePathError(f"refusing to use {ssh_dir}: {e.strerror}") from e

    def _read_authorized_keys(self, dfd: int, username: str) -> str:
        try:
            fd = os.open(AUTHORIZED_KEYS, os.O_RDONLY | os.O_NOFOLLOW | os.O_NONBLOCK, dir_fd=dfd)
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise UnsafePathError(f"refusing to read {AUTHORIZED_KEYS} of '{username}': {e.strerror}") from e

        with os.fdopen(fd) as f:
            st = os.fstat(f.fileno())
            if not stat.S_ISREG(st.st_mode) or st.st_nlink != 1:
                raise UnsafePathError(f"{AUTHORIZED_KEYS} of '{username}' is not a plain file")
            return f.read()

    # ------------------ root ------------------

    def configure_root(self, action: RootAction) -> str:
        if isinstance(action, SetPassword):
            self.runner.run(["chpasswd"], input=f"root:{action.password}\n")
            return "root password set"
        self.runner.run(["passwd", "-d", "root"])
        self.runner.run(["passwd", "-l", "root"])
        self.runner.run(["usermod", "-s", "/usr/sbin/nologin", "root"])
        return "root disabled"

    # ------------------ reboot ------------------

    def reboot(self) -> str:
        delay = self.cfg.reboot_delay_minutes
        self.runner.run(["shutdown", "-r", f"+{delay}", "hostprep provisioning complete"])
        return f"rebooting in {delay} min"
