"""
L1 Domain — ``__init__.py`` re-exports the pure installer domain.

No subprocess calls, no filesystem access, no network calls.
"""

from provisioner.services.installer.domain.download_helpers import (  # noqa: F401
    format_size,
    archive_filename,
    build_download_url,
    normalize_version,
    progress_percent,
)
from provisioner.services.installer.domain.errors import (  # noqa: F401
    ArchiveNotFoundError,
    BinaryNotFoundInArchiveError,
    DownloadFailedError,
    ExtractionError,
    InstallerError,
    PathUpdateError,
    PlacementError,
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from provisioner.services.installer.domain.models import (  # noqa: F401
    DownloadJob,
    FailureReason,
    InstallationOutcome,
    InstallState,
    InstallTarget,
    OutcomeStatus,
)
