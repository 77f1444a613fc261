"""
L4 Execution — Place the extracted binary into the install directory.

Copies rather than moves, so a scratch directory on another filesystem
is fine.  Privilege elevation for system directories is left to the
caller's environment (run under sudo / an elevated shell).
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from provisioner.services.installer.domain.errors import (
    BinaryNotFoundInArchiveError,
    PlacementError,
)
from provisioner.services.installer.domain.models import InstallTarget

logger = logging.getLogger(__name__)


class BinaryInstaller:
    """Copy ``<archive_root>/<binary>`` from the extracted tree into place."""

    def __init__(self, archive_root: str = "kubo"):
        self._archive_root = archive_root

    def source_path(self, extract_dir: Path, target: InstallTarget) -> Path:
        return Path(extract_dir) / self._archive_root / target.binary_name

    def place(self, extract_dir: Path, target: InstallTarget) -> Path:
        """Install the binary and return its final path.

        Raises:
            BinaryNotFoundInArchiveError: The archive layout changed upstream.
            PlacementError: The install directory isn't writable.
        """
        source = self.source_path(extract_dir, target)
        if not source.is_file():
            available = sorted(
                str(p.relative_to(extract_dir)) for p in Path(extract_dir).rglob("*") if p.is_file()
            )
            raise BinaryNotFoundInArchiveError(str(source), available[:10])

        dest = target.binary_path
        try:
            target.install_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
            if not target.is_windows:
                os.chmod(dest, 0o755)
        except PermissionError as exc:
            raise PlacementError(
                f"No permission to write {dest}. Re-run with elevated privileges "
                f"(e.g. sudo) or set install_dirs.{target.os} to a writable directory."
            ) from exc
        except OSError as exc:
            raise PlacementError(f"Failed to install {dest}: {exc}") from exc

        logger.info("Installed %s", dest)
        return dest
