"""
L0 Data — ``__init__.py`` re-exports the installer's static tables.
"""

from provisioner.services.installer.data.constants import (  # noqa: F401
    ARCH_MAP,
    ARCHIVE_ROOT,
    BINARY_NAME,
    DEFAULT_ARCHIVE_EXTENSIONS,
    DEFAULT_INSTALL_DIRS,
    DEFAULT_PACKAGE_MANAGERS,
    DIST_BASE_URL,
    DIST_OS_MAP,
    FALLBACK_VERSION,
    OS_MAP,
    PACKAGE_NAME,
    RELEASES_API_URL,
    SUPPORTED_ARCHES,
    USER_AGENT,
)
