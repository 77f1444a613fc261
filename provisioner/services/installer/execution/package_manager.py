"""
L4 Execution — Install through the host's native package manager.

Managers are tried in configured order per OS; the first one whose
executable exists is used.  A missing manager only means "this route
is unavailable".  A failing install falls through to the manual route.
This step never raises.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from provisioner.services.installer.domain.models import InstallTarget
from provisioner.services.installer.execution.subprocess_runner import (
    CommandRunner,
    run_command,
)

if TYPE_CHECKING:
    from provisioner.core.models.config import PackageManagerCommand

logger = logging.getLogger(__name__)


@dataclass
class PackageManagerResult:
    ok: bool
    manager: str | None = None
    detail: str = ""


class PackageManagerStrategy:
    """Try ``brew`` / ``apt-get`` / ``yum`` / ``winget`` before downloading."""

    def __init__(
        self,
        managers: dict[str, list[PackageManagerCommand]],
        *,
        runner: CommandRunner = run_command,
        which: Callable[[str], str | None] = shutil.which,
    ):
        self._managers = managers
        self._run = runner
        self._which = which

    def available(self, target: InstallTarget) -> PackageManagerCommand | None:
        """First configured manager for this OS that exists on the host."""
        for pm in self._managers.get(target.os, []):
            if self._which(pm.executable):
                return pm
            logger.debug("Package manager %s not available", pm.name)
        return None

    def try_install(self, target: InstallTarget) -> PackageManagerResult:
        pm = self.available(target)
        if pm is None:
            logger.info("No supported package manager found for %s", target.os)
            return PackageManagerResult(ok=False, detail="no package manager available")

        logger.info("Installing via %s...", pm.name)
        for cmd in pm.commands:
            result = self._run(cmd, timeout=pm.timeout)
            if not result.get("ok"):
                detail = result.get("stderr") or result.get("error", "")
                logger.info(
                    "%s install failed (%s); falling back to manual install",
                    pm.name, result.get("error", "unknown error"),
                )
                return PackageManagerResult(ok=False, manager=pm.name, detail=detail.strip())

        logger.info("Installed via %s", pm.name)
        return PackageManagerResult(ok=True, manager=pm.name)
