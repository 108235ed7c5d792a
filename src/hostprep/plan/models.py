# src/hostprep/plan/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union


# ----- root account -----

@dataclass(frozen=True)
class RemovePassword:
    pass

@dataclass(frozen=True)
class SetPassword:
    password: str = field(repr=False)

RootAction = Union[RemovePassword, SetPassword]


# ----- authorized key handling for an existing user -----

@dataclass(frozen=True)
class ReplaceKey:
    key: str

@dataclass(frozen=True)
class AppendKey:
    key: str

@dataclass(frozen=True)
class SkipKey:
    pass

KeyAction = Union[ReplaceKey, AppendKey, SkipKey]


# ----- user -----

@dataclass(frozen=True)
class CreateUser:
    username: str
    password: str = field(repr=False)
    public_key: str
    add_to_sudo: bool = True

@dataclass(frozen=True)
class ExistingUser:
    username: str
    key_action: KeyAction = SkipKey()

UserAction = Union[CreateUser, ExistingUser]


@dataclass(frozen=True)
class Plan:
    """
    Validated, immutable record of every operator decision for one run.
    Built only by ConfigCollector; steps read it, nothing writes it.
    """

    proceed: bool
    root_action: RootAction
    extend_partition: bool
    hostname: str
    user_action: UserAction
    reboot: bool

    def describe(self) -> List[str]:
        """Summary lines shown to the operator before execution."""
        lines = [
            "Install packages",
            "Regenerate SSH host keys",
            "Harden OpenSSH and restart sshd",
        ]
        if self.extend_partition:
            lines.append("Extend root partition")
        lines.append(f"Set hostname: {self.hostname}")

        ua = self.user_action
        if isinstance(ua, CreateUser):
            sudo = " with sudo" if ua.add_to_sudo else ""
            lines.append(f"Create new user '{ua.username}'{sudo}")
        else:
            lines.append(f"Ensure existing user '{ua.username}' has sudo")
            ka = ua.key_action
            if isinstance(ka, ReplaceKey):
                lines.append(f"Replace authorized keys of existing user '{ua.username}'")
            elif isinstance(ka, AppendKey):
                lines.append(f"Append key for existing user '{ua.username}'")
            else:
                lines.append(f"Leave SSH keys of '{ua.username}' unchanged")

        if isinstance(self.root_action, SetPassword):
            lines.append("Set a new root password")
        else:
            lines.append("Disable root account")

        lines.append("Reboot after completion" if self.reboot else "No reboot")
        return lines
