"""
L1 Domain — Values that flow between installer steps.

Each step owns its working state; only these values move forward.
No I/O here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class InstallTarget:
    """Where and what to install on this host.  Derived once per run."""

    os: str                  # "windows", "macos", "linux"
    arch: str                # "amd64", "arm64", "386", "arm"
    install_dir: Path
    binary_name: str         # "ipfs" or "ipfs.exe"
    dist_os: str             # distribution server naming ("darwin" for macos)
    archive_ext: str         # "zip" or "tar.gz"

    @property
    def binary_path(self) -> Path:
        return self.install_dir / self.binary_name

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"


@dataclass
class DownloadJob:
    """Lifecycle of a single archive fetch.  Mutated only by the downloader."""

    url: str
    dest_path: Path
    attempt: int = 0
    max_attempts: int = 4
    timeout: float = 30.0
    backoff: float = 2.0
    bytes_received: int = 0
    total_bytes: int | None = None


class InstallState(str, Enum):
    """Installer state machine."""

    ABSENT = "absent"
    CHECKING_PACKAGE_MANAGER = "checking_package_manager"
    RESOLVING_VERSION = "resolving_version"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    PLACING = "placing"
    CONFIGURING_PATH = "configuring_path"
    VERIFYING = "verifying"
    INSTALLED = "installed"
    VERIFICATION_FAILED = "verification_failed"
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    ALREADY_PRESENT = "already_present"
    INSTALLED_VIA_PACKAGE_MANAGER = "installed_via_package_manager"
    INSTALLED_MANUALLY = "installed_manually"
    FAILED = "failed"


class FailureReason(str, Enum):
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    ARCHIVE_NOT_FOUND = "archive_not_found"
    DOWNLOAD_FAILED = "download_failed"
    EXTRACTION_FAILED = "extraction_failed"
    BINARY_NOT_FOUND_IN_ARCHIVE = "binary_not_found_in_archive"
    PLACEMENT_FAILED = "placement_failed"
    UNEXPECTED = "unexpected"


@dataclass
class InstallationOutcome:
    """The single terminal result of an installer run."""

    status: OutcomeStatus
    reason: FailureReason | None = None
    message: str = ""
    version: str | None = None
    binary_path: str | None = None
    verified: bool = False
    warnings: list[str] = field(default_factory=list)
    history: list[InstallState] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        """Whether the dependency is installed and usable."""
        return self.status is not OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "ready": self.ready,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "version": self.version,
            "binary_path": self.binary_path,
            "verified": self.verified,
            "warnings": self.warnings,
            "history": [s.value for s in self.history],
        }
