"""
L0 Data — Distribution vocabulary and installer defaults.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# ── Release / distribution endpoints ──────────────────────────

RELEASES_API_URL = "https://api.github.com/repos/ipfs/kubo/releases/latest"
DIST_BASE_URL = "https://dist.ipfs.tech/kubo"
PACKAGE_NAME = "kubo"

# Last known-good release, used when the registry can't be reached.
FALLBACK_VERSION = "v0.22.0"

USER_AGENT = "kubo-provisioner/0.1"

# ── Platform naming ───────────────────────────────────────────

# ``platform.system()`` → our OS vocabulary.
OS_MAP: dict[str, str] = {
    "Windows": "windows",
    "Darwin": "macos",
    "Linux": "linux",
}

# Our OS vocabulary → distribution server naming.
DIST_OS_MAP: dict[str, str] = {
    "windows": "windows",
    "macos": "darwin",
    "linux": "linux",
}

# ``platform.machine()`` → Go-style arch names used by dist.ipfs.tech.
ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "AMD64": "amd64",      # Windows
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
    "ARM64": "arm64",      # Windows on ARM
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
}

# Archives actually published per OS.
SUPPORTED_ARCHES: dict[str, tuple[str, ...]] = {
    "windows": ("amd64", "arm64"),
    "macos": ("amd64", "arm64"),
    "linux": ("amd64", "arm64", "386", "arm"),
}

# ── Per-OS install layout ─────────────────────────────────────

BINARY_NAME = "ipfs"

# Directory inside the archive that holds the binary.
ARCHIVE_ROOT = "kubo"

DEFAULT_INSTALL_DIRS: dict[str, str] = {
    "windows": "~/AppData/Local/IPFS",
    "macos": "/usr/local/bin",
    "linux": "/usr/local/bin",
}

DEFAULT_ARCHIVE_EXTENSIONS: dict[str, str] = {
    "windows": "zip",
    "macos": "tar.gz",
    "linux": "tar.gz",
}

# ── Native package managers, tried in order per OS ────────────

DEFAULT_PACKAGE_MANAGERS: dict[str, list[dict]] = {
    "macos": [
        {
            "name": "brew",
            "executable": "brew",
            "commands": [["brew", "install", "ipfs"]],
        },
    ],
    "linux": [
        {
            "name": "apt",
            "executable": "apt-get",
            "commands": [
                ["sudo", "apt-get", "update"],
                ["sudo", "apt-get", "install", "-y", "ipfs"],
            ],
        },
        {
            "name": "yum",
            "executable": "yum",
            "commands": [["sudo", "yum", "install", "-y", "ipfs"]],
        },
    ],
    "windows": [
        {
            "name": "winget",
            "executable": "winget",
            "commands": [[
                "winget", "install", "IPFS.IPFS",
                "--accept-source-agreements", "--accept-package-agreements",
            ]],
        },
    ],
}

# ── Daemon ────────────────────────────────────────────────────

DAEMON_READY_MARKER = "Daemon is ready"
DEFAULT_STORAGE_MAX = "100GB"
DEFAULT_GC_WATERMARK = 90
