# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/config/loader.py

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import ProvisionConfig

log = logging.getLogger("hostprep")

SYSTEM_CONFIG = Path("/etc/hostprep/config.yaml")


def find_config_file(explicit: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the config file using this priority:

    1. explicit path (--config); must exist
    2. HOSTPREP_CONFIG environment variable
    3. /etc/hostprep/config.yaml
    """
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigError(f"config file {explicit} does not exist")
        return explicit

    env = os.environ.get("HOSTPREP_CONFIG")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("HOSTPREP_CONFIG=%s does not exist, using defaults", env)
        return None

    if SYSTEM_CONFIG.is_file():
        return SYSTEM_CONFIG

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    try:
        data = yaml.safe_load(expanded)
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(path: Optional[Path] = None) -> ProvisionConfig:
    """
    Load and validate the hostprep configuration.

    Every field has a default, so a missing file is not an error unless it
    was asked for explicitly. ``${ENV_VAR}`` placeholders are resolved with
    ``os.path.expandvars`` before validation.
    """
    found = find_config_file(Path(path) if path is not None else None)
    if found is None:
        log.debug("No config file found, using built-in defaults")
        return ProvisionConfig()

    log.debug("Loading config from %s", found)
    data = _load_yaml(found)
    try:
        return ProvisionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{found}: {e}") from e
