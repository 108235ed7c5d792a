# src/hostprep/config/models.py

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, HttpUrl, field_validator

DEFAULT_HARDENING_URL = (
    "https://raw.githubusercontent.com/troponaut/openssh-hardening/main/"
    "sshd_config.d/99-hardening.conf"
)


class HardeningConfig(BaseModel):
    """Where the OpenSSH hardening drop-in comes from and where it lands."""

    url: HttpUrl = DEFAULT_HARDENING_URL
    path: Path = Path("/etc/ssh/sshd_config.d/99-hardening.conf")
    # strict: a failed sync/validation aborts the whole run
    strict: bool = False


class ProvisionConfig(BaseModel):
    hardening: HardeningConfig = HardeningConfig()

    # Persisted state
    state_dir: Path = Path("/var/lib/hostprep")
    log_dir: Path = Path("/var/log/hostprep")

    # Packages
    packages: List[str] = Field(
        default_factory=lambda: ["openssh-server", "curl", "cloud-guest-utils"]
    )

    # SSH
    ssh_dir: Path = Path("/etc/ssh")
    ssh_service: str = "sshd"
    min_moduli_size: int = 3071

    # Accounts
    sudo_group: str = "sudo"
    login_shell: str = "/bin/bash"

    # Hostname
    hosts_file: Path = Path("/etc/hosts")
    loopback_address: str = "127.0.1.1"

    # Timeouts (seconds)
    fetch_timeout_seconds: float = 30.0
    command_timeout_seconds: float = 900.0

    reboot_delay_minutes: int = 1
    confirm_summary: bool = True

    @field_validator("packages")
    @classmethod
    def _no_blank_packages(cls, v: List[str]) -> List[str]:
        if any(not p.strip() for p in v):
            raise ValueError("package names must not be blank")
        return v

    @property
    def marker_dir(self) -> Path:
        return self.state_dir / "markers"
