"""
L3 Detection — ``__init__.py`` re-exports the read-only probes.

These look at the host and the network; they never change anything.
"""

from provisioner.services.installer.detection.platform_probe import (  # noqa: F401
    PlatformProbe,
    resolve_arch,
    resolve_os,
)
from provisioner.services.installer.detection.presence import (  # noqa: F401
    PresenceChecker,
    PresenceReport,
)
from provisioner.services.installer.detection.version_resolver import (  # noqa: F401
    VersionResolver,
)
