"""
Config check use case — validate provisioner.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from provisioner.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    find_config_file,
    load_config,
)
from provisioner.core.models.config import ProvisionerConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: ProvisionerConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "config": self.config.model_dump(mode="json") if self.config else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate provisioner configuration and report issues.

    A missing file is valid (defaults apply) but is reported as a warning.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            result.warnings.append(f"No {CONFIG_FILE} found; using built-in defaults.")

    result.config_path = config_path

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config

    # Semantic checks
    if config.release.pinned_version:
        result.warnings.append(
            f"Version pinned to {config.release.pinned_version}; "
            "latest release lookup is disabled."
        )

    if config.download.max_attempts == 1:
        result.warnings.append("download.max_attempts is 1; transient failures won't be retried.")

    if not config.use_package_manager:
        result.warnings.append("Package managers disabled; always installing from archive.")

    result.valid = True
    return result
