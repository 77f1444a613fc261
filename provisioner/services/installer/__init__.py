"""
Kubo installer — detect, download, extract, place, verify.

Layers (each imports only from the ones above it):

    data/           constants and default tables
    domain/         pure values, errors, URL helpers
    detection/      read-only probes (platform, presence, version)
    execution/      steps that write to the system
    orchestration/  the installer flow and its single outcome
"""

from provisioner.services.installer.domain.models import (  # noqa: F401
    FailureReason,
    InstallationOutcome,
    InstallState,
    OutcomeStatus,
)
from provisioner.services.installer.orchestration import (  # noqa: F401
    Installer,
    ensure_dependency,
    install,
)
