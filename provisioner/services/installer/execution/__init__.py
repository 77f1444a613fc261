"""
L4 Execution — ``__init__.py`` re-exports the installer steps.

These WRITE to the system: downloads, extraction, file copies,
package manager commands and PATH changes.
"""

from provisioner.services.installer.execution.binary_install import (  # noqa: F401
    BinaryInstaller,
)
from provisioner.services.installer.execution.download import (  # noqa: F401
    LoggingProgress,
    ProgressListener,
    RetryingDownloader,
)
from provisioner.services.installer.execution.extract import (  # noqa: F401
    ArchiveExtractor,
)
from provisioner.services.installer.execution.package_manager import (  # noqa: F401
    PackageManagerResult,
    PackageManagerStrategy,
)
from provisioner.services.installer.execution.path_config import (  # noqa: F401
    PathConfigurator,
    PowerShellPathStore,
    UserPathStore,
)
from provisioner.services.installer.execution.subprocess_runner import (  # noqa: F401
    run_command,
)
from provisioner.services.installer.execution.verify import (  # noqa: F401
    InstallVerifier,
    VerificationResult,
)
