"""
L3 Detection — Platform probe.

Resolves the running OS and CPU architecture into the vocabulary the
distribution server and package managers use, and picks the install
directory by OS convention.  Read-only.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from provisioner.services.installer.data.constants import (
    ARCH_MAP,
    DIST_OS_MAP,
    OS_MAP,
    SUPPORTED_ARCHES,
)
from provisioner.services.installer.domain.errors import (
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from provisioner.services.installer.domain.models import InstallTarget

if TYPE_CHECKING:
    from provisioner.core.models.config import ProvisionerConfig

logger = logging.getLogger(__name__)


def resolve_os(system: str) -> str:
    """``platform.system()`` → ``windows`` / ``macos`` / ``linux``."""
    os_name = OS_MAP.get(system)
    if os_name is None:
        raise UnsupportedPlatformError(f"Unsupported operating system: {system or 'unknown'}")
    return os_name


def resolve_arch(machine: str, os_name: str) -> str:
    """``platform.machine()`` → distribution arch, checked against the OS."""
    arch = ARCH_MAP.get(machine) or ARCH_MAP.get(machine.lower())
    if arch is None:
        raise UnsupportedArchitectureError(
            f"Unsupported architecture: {machine or 'unknown'}"
        )
    if arch not in SUPPORTED_ARCHES.get(os_name, ()):
        raise UnsupportedArchitectureError(
            f"No {os_name} build published for architecture {arch}"
        )
    return arch


def expand_dir(raw: str) -> Path:
    """Expand ``~`` and ``$VAR`` / ``%VAR%`` in a configured directory."""
    return Path(os.path.expanduser(os.path.expandvars(raw)))


class PlatformProbe:
    """Build the ``InstallTarget`` for this host.

    Unsupported platforms raise immediately: retrying can't change the
    host's CPU, so the whole run stops here.
    """

    def __init__(
        self,
        config: ProvisionerConfig,
        *,
        system: Callable[[], str] = platform.system,
        machine: Callable[[], str] = platform.machine,
    ):
        self._config = config
        self._system = system
        self._machine = machine

    def probe(self) -> InstallTarget:
        os_name = resolve_os(self._system())
        arch = resolve_arch(self._machine(), os_name)

        binary = self._config.binary_name
        if os_name == "windows" and not binary.lower().endswith(".exe"):
            binary += ".exe"

        target = InstallTarget(
            os=os_name,
            arch=arch,
            install_dir=expand_dir(self._config.install_dirs[os_name]),
            binary_name=binary,
            dist_os=DIST_OS_MAP[os_name],
            archive_ext=self._config.archive_extensions[os_name],
        )
        logger.info(
            "Platform: %s/%s, install dir %s", target.os, target.arch, target.install_dir,
        )
        return target
