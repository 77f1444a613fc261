"""
Configuration models for the provisioner.
"""

from provisioner.core.models.config import (  # noqa: F401
    DaemonSettings,
    DownloadSettings,
    PackageManagerCommand,
    ProvisionerConfig,
    ReleaseSettings,
)
