"""
L4 Execution — Archive extraction.

``.zip`` goes through ``zipfile``; everything else is treated as a
gzip-compressed tarball.  The destination is always a scratch
directory, never the install directory.
"""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
from pathlib import Path

from provisioner.services.installer.domain.errors import ExtractionError

logger = logging.getLogger(__name__)


class ArchiveExtractor:
    """Unpack a downloaded archive into a scratch directory."""

    def extract(self, archive_path: Path, dest_dir: Path) -> Path:
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)

        logger.info("Extracting %s", archive_path.name)
        try:
            if archive_path.name.endswith(".zip"):
                self._extract_zip(archive_path, dest_dir)
            else:
                self._extract_tar(archive_path, dest_dir)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as exc:
            raise ExtractionError(f"Extract failed for {archive_path.name}: {exc}") from exc
        return dest_dir

    def _extract_zip(self, archive_path: Path, dest_dir: Path) -> None:
        with zipfile.ZipFile(archive_path, "r") as zf:
            for name in zf.namelist():
                _check_member(dest_dir, name)
            zf.extractall(dest_dir)

    def _extract_tar(self, archive_path: Path, dest_dir: Path) -> None:
        with tarfile.open(archive_path, "r:gz") as tf:
            members = tf.getmembers()
            for member in members:
                _check_member(dest_dir, member.name)
                if member.issym() or member.islnk():
                    _check_member(dest_dir, os.path.join(os.path.dirname(member.name), member.linkname))
            tf.extractall(dest_dir, members=members)


def _check_member(dest_dir: Path, name: str) -> None:
    """Reject members that would land outside ``dest_dir``."""
    root = dest_dir.resolve()
    resolved = (root / name).resolve()
    if resolved != root and root not in resolved.parents:
        raise ExtractionError(f"Unsafe path in archive: {name}")
