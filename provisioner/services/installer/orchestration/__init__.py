"""
L5 Orchestration — ``__init__.py`` re-exports the installer flow.
"""

from provisioner.services.installer.orchestration.orchestrator import (  # noqa: F401
    Installer,
    ensure_dependency,
    install,
)
