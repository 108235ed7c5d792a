# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/deploy/planner.py
from __future__ import annotations

from functools import partial
from typing import Callable, List

from ..bootstrap.host.actions import HostActions
from ..plan.models import CreateUser, Plan, SetPassword
from .config_sync import ConfigSyncStep
from .steps import Criticality, Step

PARTITION_KEY = "partition-expanded"


def build_steps(
    plan: Plan,
    *,
    actions: HostActions,
    sync: ConfigSyncStep,
    preflight: Callable[[], str],
    strict_hardening: bool = False,
) -> List[Step]:
    """
    Translate a Plan into the fixed step sequence.

    Order matters: the user and root steps assume the packages (openssh) and
    the hardened sshd from the earlier steps are already in place.
    """
    steps: List[Step] = [
        Step("preflight", "Verify root privileges", preflight, criticality=Criticality.FATAL),
        Step("install-packages", "Install packages", actions.install_packages),
        Step("regenerate-host-keys", "Regenerate SSH host keys", actions.regenerate_host_keys),
        Step(
            sync.step_id,
            "Harden OpenSSH",
            sync.apply,
            criticality=Criticality.FATAL if strict_hardening else Criticality.TOLERANT,
        ),
        Step("restart-ssh", "Restart sshd", actions.restart_ssh, requires=(sync.step_id,)),
    ]

    if plan.extend_partition:
        steps.append(
            Step(
                "expand-partition",
                "Extend root partition",
                actions.expand_partition,
                idempotency_key=PARTITION_KEY,
            )
        )

    steps.append(Step("set-hostname", f"Set hostname {plan.hostname}", partial(actions.set_hostname, plan.hostname)))

    ua = plan.user_action
    if isinstance(ua, CreateUser):
        steps.append(Step("create-user", f"Create user {ua.username}", partial(actions.create_user, ua)))
    else:
        steps.append(Step("update-user", f"Update user {ua.username}", partial(actions.update_user, ua)))

    if isinstance(plan.root_action, SetPassword):
        steps.append(Step("root-account", "Set root password", partial(actions.configure_root, plan.root_action)))
    else:
        steps.append(Step("root-account", "Disable root", partial(actions.configure_root, plan.root_action)))

    if plan.reboot:
        steps.append(Step("reboot", "Reboot system", actions.reboot))

    return steps
