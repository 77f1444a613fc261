"""
Bring-up use case — install the binary if needed, then run the daemon.

    ensure installed → ipfs init → ipfs config → ipfs daemon

Daemon setup only starts once the install outcome is ready.  A repo
that already exists counts as initialized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from provisioner.core.models.config import ProvisionerConfig
from provisioner.services.daemon import (
    DaemonError,
    DaemonSupervisor,
    InitResult,
    StartResult,
)
from provisioner.services.installer import InstallationOutcome, Installer
from provisioner.services.installer.execution.download import ProgressListener

logger = logging.getLogger(__name__)


@dataclass
class BringUpResult:
    """What happened at each stage; later stages stay None when skipped."""

    outcome: InstallationOutcome
    init: InitResult | None = None
    configured: list[str] = field(default_factory=list)
    start: StartResult | None = None
    log_path: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome.ready and self.start is not None and self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "install": self.outcome.to_dict(),
            "daemon": {
                "init": self.init.value if self.init else None,
                "configured": self.configured,
                "start": self.start.value if self.start else None,
                "log": self.log_path,
            },
            "error": self.error,
        }


def bring_up(
    config: ProvisionerConfig,
    *,
    pinned_version: str | None = None,
    use_package_manager: bool | None = None,
    progress: ProgressListener | None = None,
    installer: Installer | None = None,
    supervisor_factory: Callable[..., DaemonSupervisor] | None = None,
) -> BringUpResult:
    """Run the whole setup.  Errors come back on the result, never raised."""
    installer = installer or Installer(config, progress=progress)
    outcome = installer.run(
        pinned_version=pinned_version,
        use_package_manager=use_package_manager,
    )
    result = BringUpResult(outcome=outcome)
    if not outcome.ready:
        logger.info("IPFS is not installed; skipping daemon setup")
        return result

    # A fresh manual install may not be on this shell's PATH yet
    binary = outcome.binary_path or config.binary_name
    supervisor = (supervisor_factory or DaemonSupervisor)(config.daemon, binary=binary)
    result.log_path = str(supervisor.log_path)

    try:
        result.init = supervisor.init()
        result.configured = supervisor.configure()
        result.start = supervisor.start()
    except DaemonError as e:
        logger.warning("Daemon setup failed: %s", e)
        result.error = str(e)

    return result
