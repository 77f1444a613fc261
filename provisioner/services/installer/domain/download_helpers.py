"""
L1 Domain — Download helpers (pure).

URL construction, version normalisation, progress math and size
formatting.  No I/O, no subprocess.
"""

from __future__ import annotations

from provisioner.services.installer.domain.models import InstallTarget


def normalize_version(version: str) -> str:
    """Return the tag with exactly one leading ``v`` (``0.22.0`` → ``v0.22.0``)."""
    version = version.strip()
    return version if version.startswith("v") else f"v{version}"


def build_download_url(
    target: InstallTarget,
    version: str,
    *,
    base_url: str,
    package: str,
) -> str:
    """Build ``{base}/{version}/{package}_{version}_{os}-{arch}.{ext}``.

    e.g. ``https://dist.ipfs.tech/kubo/v0.22.0/kubo_v0.22.0_linux-amd64.tar.gz``
    """
    tag = normalize_version(version)
    filename = f"{package}_{tag}_{target.dist_os}-{target.arch}.{target.archive_ext}"
    return f"{base_url.rstrip('/')}/{tag}/{filename}"


def archive_filename(url: str) -> str:
    """Last path segment of a download URL."""
    return url.rstrip("/").rsplit("/", 1)[-1]


def progress_percent(received: int, total: int | None) -> int | None:
    """Percentage of ``total`` received, or None when the size is unknown."""
    if not total or total <= 0:
        return None
    return min(100, int(received * 100 / total))


def format_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"
