# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/plan/collector.py
from __future__ import annotations

import logging
import re
import socket
from typing import Callable, Optional

from ..errors import UserCancelled
from .models import (
    AppendKey,
    CreateUser,
    ExistingUser,
    KeyAction,
    Plan,
    RemovePassword,
    ReplaceKey,
    RootAction,
    SetPassword,
    SkipKey,
    UserAction,
)
from .prompts import Prompter

log = logging.getLogger("hostprep")

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_USERNAME = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")

ROOT_REMOVE = "remove-password"
ROOT_SET = "set-password"

KEY_REPLACE = "replace"
KEY_APPEND = "append"
KEY_SKIP = "skip"


def valid_hostname(name: str) -> bool:
    if not name or len(name) > 253:
        return False
    return all(_HOSTNAME_LABEL.match(label) for label in name.split("."))


def valid_username(name: str) -> bool:
    return bool(_USERNAME.match(name))


class ConfigCollector:
    """
    Drives the operator prompts and turns the answers into a validated Plan.

    The only cancellation points live here: the initial "continue?" and, when
    enabled, the confirmation after the summary. Both raise UserCancelled
    before any step exists.
    """

    def __init__(
        self,
        prompter: Prompter,
        *,
        user_exists: Callable[[str], bool],
        current_hostname: Optional[Callable[[], str]] = None,
        confirm_summary: bool = True,
    ):
        self.prompter = prompter
        self.user_exists = user_exists
        self.current_hostname = current_hostname or socket.gethostname
        self.confirm_summary = confirm_summary

    def collect(self) -> Plan:
        p = self.prompter

        if not p.confirm("Do you want to continue provisioning?", default=False):
            log.info("operator declined to continue")
            raise UserCancelled("Exiting provisioning")

        root_action = self._root_action()
        extend = p.confirm("Extend root partition to full disk?", default=False)
        hostname = self._hostname()
        user_action = self._user_action()
        reboot = p.confirm("Reboot after completion?", default=False)

        plan = Plan(
            proceed=True,
            root_action=root_action,
            extend_partition=extend,
            hostname=hostname,
            user_action=user_action,
            reboot=reboot,
        )
        log.debug(f"plan collected: {plan}")

        p.info("=======================================")
        p.info("        PROVISIONING SUMMARY")
        p.info("=======================================")
        for line in plan.describe():
            p.info(f" • {line}")

        if self.confirm_summary and not p.confirm("Proceed with these actions?", default=False):
            log.info("operator declined the summary")
            raise UserCancelled("Provisioning canceled.")

        return plan

    # ------------------ individual answers ------------------

    def _root_action(self) -> RootAction:
        choice = self.prompter.choice(
            "Root account: remove its password or set a new one?",
            [ROOT_REMOVE, ROOT_SET],
            default=ROOT_REMOVE,
        )
        if choice == ROOT_SET:
            return SetPassword(self._password("Enter new root password:"))
        return RemovePassword()

    def _hostname(self) -> str:
        default = self.current_hostname()
        while True:
            answer = self.prompter.text("Enter hostname", default=default).strip()
            name = answer or default
            if valid_hostname(name):
                return name
            self.prompter.error(f"'{name}' is not a valid hostname.")

    def _username(self) -> str:
        while True:
            name = self.prompter.text("Enter username").strip()
            if valid_username(name):
                return name
            self.prompter.error(f"'{name}' is not a valid username.")

    def _password(self, message: str) -> str:
        password = self.prompter.secret(message)
        while not password:
            self.prompter.error("Password cannot be empty. Please enter a password:")
            password = self.prompter.secret(message)
        return password

    def _user_action(self) -> UserAction:
        username = self._username()

        if self.user_exists(username):
            self.prompter.info(f"User '{username}' exists; choose how to handle its SSH key.")
            return ExistingUser(username=username, key_action=self._key_action(username))

        password = self._password(f"Enter password for {username}:")
        public_key = self.prompter.text(f"Enter public SSH key for {username}").strip()
        add_to_sudo = self.prompter.confirm(f"Add {username} to the sudo group?", default=True)
        return CreateUser(
            username=username,
            password=password,
            public_key=public_key,
            add_to_sudo=add_to_sudo,
        )

    def _key_action(self, username: str) -> KeyAction:
        choice = self.prompter.choice(
            f"Authorized keys for {username}:",
            [KEY_REPLACE, KEY_APPEND, KEY_SKIP],
            default=KEY_SKIP,
        )
        if choice == KEY_SKIP:
            return SkipKey()

        key = self.prompter.text(f"Enter public SSH key for {username}").strip()
        while not key:
            self.prompter.error("Key cannot be empty.")
            key = self.prompter.text(f"Enter public SSH key for {username}").strip()

        return ReplaceKey(key) if choice == KEY_REPLACE else AppendKey(key)
