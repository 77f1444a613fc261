"""
L1 Domain — Installer error taxonomy.

Fatal conditions are raised as ``InstallerError`` subclasses; the
orchestrator turns each into a single ``FAILED`` outcome.  Transient
network failures never escape the downloader as anything but
``DownloadFailedError`` once retries are exhausted.
"""

from __future__ import annotations


class InstallerError(Exception):
    """Base class for every condition the installer cannot recover from."""


class UnsupportedPlatformError(InstallerError):
    """The host OS / architecture has no published archive."""


class UnsupportedArchitectureError(UnsupportedPlatformError):
    """The CPU architecture has no mapping to the distributor's naming."""


class ArchiveNotFoundError(InstallerError):
    """The distribution server answered 404 for the requested archive."""

    def __init__(self, url: str):
        super().__init__(f"Archive not found (HTTP 404): {url}")
        self.url = url


class DownloadFailedError(InstallerError):
    """All download attempts failed with transient errors."""

    def __init__(self, url: str, attempts: int, cause: Exception | None = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"Download failed after {attempts} attempt(s){detail}")
        self.url = url
        self.attempts = attempts
        self.cause = cause


class ExtractionError(InstallerError):
    """The archive is corrupt or contains unsafe member paths."""


class BinaryNotFoundInArchiveError(InstallerError):
    """The extracted tree lacks the binary at its expected location."""

    def __init__(self, expected: str, available: list[str] | None = None):
        super().__init__(f"Binary not found in archive: expected {expected}")
        self.expected = expected
        self.available = available or []


class PlacementError(InstallerError):
    """Copying the binary into the install directory failed."""


class PathUpdateError(InstallerError):
    """The user-scope PATH could not be read or written."""
