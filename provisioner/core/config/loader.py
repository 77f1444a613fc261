"""
Configuration loader — provisioner.yml → ProvisionerConfig.

The file is optional.  When no path is given the loader looks in the
working directory and each of its parents; with nothing found the
built-in defaults apply.  An explicit path that does not exist is an
error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from provisioner.core.models.config import ProvisionerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "provisioner.yml"

# Settings may sit at the top level or under this key
_WRAPPER_KEY = "provisioner"


class ConfigError(Exception):
    """Raised when provisioner configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Return the nearest provisioner.yml at or above ``start_dir`` (default: cwd)."""
    here = (start_dir or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None) -> ProvisionerConfig:
    """Load and validate provisioner configuration.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return ProvisionerConfig()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    settings = _read_mapping(path)
    try:
        config = ProvisionerConfig.model_validate(settings.get(_WRAPPER_KEY, settings))
    except ValidationError as e:
        raise ConfigError(f"Invalid provisioner configuration in {path}: {e}") from e

    logger.info("Loaded provisioner config from %s", path)
    return config


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data
