"""
L4 Execution — Post-install verification.

Re-resolves the binary on the *current* PATH and runs ``--version``.
A failure here after a successful copy usually means PATH hasn't
propagated yet; it's reported with guidance, not rolled back.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Callable

from provisioner.services.installer.domain.models import InstallTarget
from provisioner.services.installer.execution.subprocess_runner import (
    CommandRunner,
    run_command,
)

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    ok: bool
    version: str | None = None
    path: str | None = None
    detail: str = ""
    guidance: list[str] = field(default_factory=list)


class InstallVerifier:
    """Confirm the installed binary runs end-to-end."""

    def __init__(
        self,
        *,
        runner: CommandRunner = run_command,
        which: Callable[..., str | None] = shutil.which,
    ):
        self._run = runner
        self._which = which

    def verify(self, target: InstallTarget) -> VerificationResult:
        binary = self._which(target.binary_name, path=os.environ.get("PATH", ""))
        if not binary:
            return self._unverified(target, f"'{target.binary_name}' not found in PATH after install")

        result = self._run([binary, "--version"], timeout=10)
        if not result.get("ok"):
            return self._unverified(target, result.get("error", "version check failed"))

        version = result.get("stdout", "").strip()
        logger.info("Verified %s (%s)", binary, version)
        return VerificationResult(ok=True, version=version or None, path=binary)

    def _unverified(self, target: InstallTarget, detail: str) -> VerificationResult:
        logger.warning("Installation completed but verification failed: %s", detail)
        return VerificationResult(
            ok=False,
            path=str(target.binary_path),
            detail=detail,
            guidance=[
                "Open a new terminal window",
                f"Verify {target.install_dir} is in your PATH",
                f"Try running: {target.binary_name} --version",
            ],
        )
