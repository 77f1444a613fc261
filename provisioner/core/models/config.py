"""
Provisioner configuration model — loaded from provisioner.yml.

Every field has a default, so an empty (or missing) file yields a
working configuration for installing kubo from dist.ipfs.tech.
The per-OS differences between install strategies live here as maps
rather than as separate code paths.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from provisioner.services.installer.data.constants import (
    ARCHIVE_ROOT,
    BINARY_NAME,
    DAEMON_READY_MARKER,
    DEFAULT_ARCHIVE_EXTENSIONS,
    DEFAULT_GC_WATERMARK,
    DEFAULT_INSTALL_DIRS,
    DEFAULT_PACKAGE_MANAGERS,
    DEFAULT_STORAGE_MAX,
    DIST_BASE_URL,
    FALLBACK_VERSION,
    PACKAGE_NAME,
    RELEASES_API_URL,
    USER_AGENT,
)


class ReleaseSettings(BaseModel):
    """Where versions and archives come from."""

    registry_url: str = RELEASES_API_URL
    registry_timeout: float = 10.0
    dist_base_url: str = DIST_BASE_URL
    package_name: str = PACKAGE_NAME
    fallback_version: str = FALLBACK_VERSION
    pinned_version: str | None = None
    user_agent: str = USER_AGENT

    @field_validator("registry_url", "dist_base_url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        if urlsplit(value).scheme not in ("http", "https"):
            raise ValueError(f"must be an http(s) URL, got {value!r}")
        return value


class DownloadSettings(BaseModel):
    """Retry/backoff policy for the archive download."""

    max_attempts: int = Field(default=4, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    base_delay: float = Field(default=2.0, ge=0)
    backoff_factor: float = Field(default=1.5, gt=1.0)
    max_delay: float = Field(default=60.0, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)


class PackageManagerCommand(BaseModel):
    """One native package manager and the commands that install kubo with it."""

    name: str
    executable: str
    commands: list[list[str]]
    timeout: int = 300


class DaemonSettings(BaseModel):
    """Daemon repo location, storage quota and startup behaviour."""

    repo_path: str | None = None          # exported as IPFS_PATH
    storage_max: str = DEFAULT_STORAGE_MAX
    gc_watermark: int = Field(default=DEFAULT_GC_WATERMARK, ge=0, le=100)
    cors_allow_origin: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["PUT", "POST", "GET"],
    )
    ready_marker: str = DAEMON_READY_MARKER
    ready_timeout: float = 60.0
    log_file: str = "~/.cache/kubo-provisioner/daemon.log"


class ProvisionerConfig(BaseModel):
    """Root configuration — the canonical truth for one provisioning run."""

    binary_name: str = BINARY_NAME
    archive_root: str = ARCHIVE_ROOT
    use_package_manager: bool = True

    install_dirs: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_INSTALL_DIRS),
    )
    archive_extensions: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_ARCHIVE_EXTENSIONS),
    )
    package_managers: dict[str, list[PackageManagerCommand]] = Field(
        default_factory=lambda: {
            os_name: [PackageManagerCommand(**pm) for pm in managers]
            for os_name, managers in DEFAULT_PACKAGE_MANAGERS.items()
        },
    )

    release: ReleaseSettings = Field(default_factory=ReleaseSettings)
    download: DownloadSettings = Field(default_factory=DownloadSettings)
    daemon: DaemonSettings = Field(default_factory=DaemonSettings)

    @field_validator("install_dirs", "archive_extensions")
    @classmethod
    def _merge_os_defaults(cls, value: dict[str, str], info) -> dict[str, str]:
        """Partial maps in YAML only override the OSes they name."""
        defaults = (
            DEFAULT_INSTALL_DIRS if info.field_name == "install_dirs"
            else DEFAULT_ARCHIVE_EXTENSIONS
        )
        merged = dict(defaults)
        merged.update(value)
        return merged
