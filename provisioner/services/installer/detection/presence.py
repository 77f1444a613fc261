"""
L3 Detection — Is the binary already installed and runnable?

A file with the right name is not enough: the binary must also answer
``--version``.  A present-but-broken binary counts as absent so the
installer can replace it.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import Any, Callable

from provisioner.services.installer.domain.models import InstallTarget
from provisioner.services.installer.execution.subprocess_runner import (
    CommandRunner,
    run_command,
)

logger = logging.getLogger(__name__)


@dataclass
class PresenceReport:
    """What the presence check found."""

    installed: bool = False
    path: str | None = None
    on_path: bool = False
    runs: bool = False
    version: str | None = None
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "installed": self.installed,
            "path": self.path,
            "on_path": self.on_path,
            "runs": self.runs,
            "version": self.version,
            "detail": self.detail,
        }


class PresenceChecker:
    """Locate the binary on PATH or in the install dir and run it."""

    def __init__(
        self,
        target: InstallTarget,
        *,
        runner: CommandRunner = run_command,
        which: Callable[[str], str | None] = shutil.which,
    ):
        self._target = target
        self._run = runner
        self._which = which

    def is_installed(self) -> bool:
        return self.check().installed

    def check(self) -> PresenceReport:
        found = self._which(self._target.binary_name)
        if found:
            ok, version = self._self_check(found)
            if ok:
                logger.info("%s is installed at %s (%s)", self._target.binary_name, found, version)
                return PresenceReport(
                    installed=True, path=found, on_path=True, runs=True, version=version,
                )
            logger.warning(
                "%s found at %s but failed to run; it will be reinstalled",
                self._target.binary_name, found,
            )
            return PresenceReport(
                path=found, on_path=True, detail="binary on PATH does not run",
            )

        fallback = self._target.binary_path
        if fallback.is_file():
            ok, version = self._self_check(str(fallback))
            if ok:
                logger.info("%s found at %s but not on PATH", self._target.binary_name, fallback)
                return PresenceReport(
                    installed=True, path=str(fallback), runs=True, version=version,
                    detail="installed but not on PATH",
                )
            logger.warning("%s exists at %s but failed to run", self._target.binary_name, fallback)
            return PresenceReport(path=str(fallback), detail="binary in install dir does not run")

        logger.info("%s is not installed", self._target.binary_name)
        return PresenceReport(detail="not found")

    def _self_check(self, binary: str) -> tuple[bool, str | None]:
        result = self._run([binary, "--version"], timeout=10)
        if not result.get("ok"):
            return False, None
        return True, result.get("stdout", "").strip() or None
