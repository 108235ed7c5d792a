from pathlib import Path
import textwrap

import pytest

from hostprep.config import loader
from hostprep.config.loader import load_config
from hostprep.errors import ConfigError


@pytest.fixture(autouse=True)
def no_system_config(monkeypatch, tmp_path):
    monkeypatch.delenv("HOSTPREP_CONFIG", raising=False)
    monkeypatch.setattr(loader, "SYSTEM_CONFIG", tmp_path / "absent" / "config.yaml")


def test_defaults_without_any_file():
    cfg = load_config()
    assert cfg.hardening.strict is False
    assert cfg.hardening.path == Path("/etc/ssh/sshd_config.d/99-hardening.conf")
    assert cfg.marker_dir == Path("/var/lib/hostprep/markers")
    assert "openssh-server" in cfg.packages


def test_load_config_with_env_expansion(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOSTPREP_STATE", str(tmp_path / "state"))
    f = tmp_path / "config.yaml"
    f.write_text(textwrap.dedent("""
        state_dir: ${HOSTPREP_STATE}
        hardening:
          url: https://example.test/hardening.conf
          strict: true
        packages: [openssh-server, vim]
    """))
    cfg = load_config(f)
    assert cfg.state_dir == tmp_path / "state"
    assert cfg.hardening.strict is True
    assert str(cfg.hardening.url) == "https://example.test/hardening.conf"
    assert cfg.packages == ["openssh-server", "vim"]


def test_env_variable_points_at_config(tmp_path: Path, monkeypatch):
    f = tmp_path / "env.yaml"
    f.write_text("ssh_service: ssh\n")
    monkeypatch.setenv("HOSTPREP_CONFIG", str(f))
    assert load_config().ssh_service == "ssh"


def test_missing_env_config_falls_back_to_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOSTPREP_CONFIG", str(tmp_path / "nope.yaml"))
    assert load_config().ssh_service == "sshd"


def test_explicit_missing_file_is_an_error(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize("body", [
    "packages: [openssh-server, '  ']\n",
    "hardening:\n  url: not a url\n",
    "- just\n- a list\n",
    "state_dir: [unclosed\n",
])
def test_invalid_config_raises_config_error(tmp_path: Path, body):
    f = tmp_path / "bad.yaml"
    f.write_text(body)
    with pytest.raises(ConfigError):
        load_config(f)
