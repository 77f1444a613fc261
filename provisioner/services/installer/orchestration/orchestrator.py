"""
L5 Orchestration — The installer flow.

    probe → presence → package manager → version → download →
    extract → place → PATH → verify

Each step resolves what it can locally (fallback version, next package
manager, retries) and raises only what it can't.  This module turns
every such condition into a single ``InstallationOutcome`` and removes
the scratch directory on every path.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from provisioner.core.http_client import HttpClient
from provisioner.core.reliability.retry_policy import RetryPolicy
from provisioner.services.installer.detection.platform_probe import PlatformProbe
from provisioner.services.installer.detection.presence import PresenceChecker
from provisioner.services.installer.detection.version_resolver import VersionResolver
from provisioner.services.installer.domain.download_helpers import (
    archive_filename,
    build_download_url,
)
from provisioner.services.installer.domain.errors import (
    ArchiveNotFoundError,
    BinaryNotFoundInArchiveError,
    DownloadFailedError,
    ExtractionError,
    InstallerError,
    PathUpdateError,
    PlacementError,
    UnsupportedPlatformError,
)
from provisioner.services.installer.domain.models import (
    FailureReason,
    InstallationOutcome,
    InstallState,
    InstallTarget,
    OutcomeStatus,
)
from provisioner.services.installer.execution.binary_install import BinaryInstaller
from provisioner.services.installer.execution.download import (
    LoggingProgress,
    ProgressListener,
    RetryingDownloader,
)
from provisioner.services.installer.execution.extract import ArchiveExtractor
from provisioner.services.installer.execution.package_manager import PackageManagerStrategy
from provisioner.services.installer.execution.path_config import PathConfigurator
from provisioner.services.installer.execution.subprocess_runner import (
    CommandRunner,
    run_command,
)
from provisioner.services.installer.execution.verify import InstallVerifier

if TYPE_CHECKING:
    from provisioner.core.models.config import ProvisionerConfig

logger = logging.getLogger(__name__)

_REASONS: list[tuple[type[InstallerError], FailureReason]] = [
    (UnsupportedPlatformError, FailureReason.UNSUPPORTED_PLATFORM),
    (ArchiveNotFoundError, FailureReason.ARCHIVE_NOT_FOUND),
    (DownloadFailedError, FailureReason.DOWNLOAD_FAILED),
    (ExtractionError, FailureReason.EXTRACTION_FAILED),
    (BinaryNotFoundInArchiveError, FailureReason.BINARY_NOT_FOUND_IN_ARCHIVE),
    (PlacementError, FailureReason.PLACEMENT_FAILED),
]


def _reason_for(exc: InstallerError) -> FailureReason:
    for exc_type, reason in _REASONS:
        if isinstance(exc, exc_type):
            return reason
    return FailureReason.UNEXPECTED


class Installer:
    """Runs the full provisioning flow once and reports one outcome.

    Every collaborator can be injected; anything not given is built
    from ``config``.
    """

    def __init__(
        self,
        config: ProvisionerConfig,
        client: HttpClient | None = None,
        *,
        runner: CommandRunner = run_command,
        which: Callable[..., str | None] = shutil.which,
        probe: PlatformProbe | None = None,
        package_manager: PackageManagerStrategy | None = None,
        resolver: VersionResolver | None = None,
        downloader: RetryingDownloader | None = None,
        extractor: ArchiveExtractor | None = None,
        binary_installer: BinaryInstaller | None = None,
        path_configurator: PathConfigurator | None = None,
        verifier: InstallVerifier | None = None,
        progress: ProgressListener | None = None,
        scratch_root: Path | None = None,
    ):
        self.config = config
        client = client or HttpClient(config.release.user_agent)
        release = config.release

        self._runner = runner
        self._which = which
        self._probe = probe or PlatformProbe(config)
        self._package_manager = package_manager or PackageManagerStrategy(
            config.package_managers, runner=runner, which=which,
        )
        self._resolver = resolver or VersionResolver(
            client,
            registry_url=release.registry_url,
            fallback_version=release.fallback_version,
            timeout=release.registry_timeout,
        )
        self._downloader = downloader or RetryingDownloader(
            client,
            policy=RetryPolicy.from_settings(config.download),
            timeout=config.download.timeout,
            chunk_size=config.download.chunk_size,
            progress=progress or LoggingProgress(),
        )
        self._extractor = extractor or ArchiveExtractor()
        self._binary_installer = binary_installer or BinaryInstaller(config.archive_root)
        self._path_configurator = path_configurator
        self._verifier = verifier or InstallVerifier(runner=runner, which=which)
        self._scratch_root = scratch_root
        self._history: list[InstallState] = []

    # ── Public API ────────────────────────────────────────────

    def run(
        self,
        *,
        pinned_version: str | None = None,
        use_package_manager: bool | None = None,
    ) -> InstallationOutcome:
        """Make sure the binary is installed.  Never raises installer errors."""
        self._history = []
        if use_package_manager is None:
            use_package_manager = self.config.use_package_manager
        pinned_version = pinned_version or self.config.release.pinned_version

        try:
            target = self._probe.probe()
        except UnsupportedPlatformError as exc:
            logger.error("%s", exc)
            self._transition(InstallState.UNSUPPORTED_PLATFORM)
            return self._failed(FailureReason.UNSUPPORTED_PLATFORM, str(exc))

        report = PresenceChecker(target, runner=self._runner, which=self._which).check()
        if report.installed:
            self._transition(InstallState.INSTALLED)
            outcome = InstallationOutcome(
                status=OutcomeStatus.ALREADY_PRESENT,
                message=f"{target.binary_name} is already installed",
                version=report.version,
                binary_path=report.path,
                verified=True,
                history=list(self._history),
            )
            if not report.on_path:
                self._repair_path(target, outcome)
            return outcome

        self._transition(InstallState.ABSENT)

        if use_package_manager:
            self._transition(InstallState.CHECKING_PACKAGE_MANAGER)
            pm = self._package_manager.try_install(target)
            if pm.ok:
                self._transition(InstallState.INSTALLED)
                return InstallationOutcome(
                    status=OutcomeStatus.INSTALLED_VIA_PACKAGE_MANAGER,
                    message=f"Installed via {pm.manager}",
                    history=list(self._history),
                )

        return self._manual_install(target, pinned_version)

    # ── Manual route ──────────────────────────────────────────

    def _manual_install(self, target: InstallTarget, pinned: str | None) -> InstallationOutcome:
        logger.info("Proceeding with manual installation...")
        scratch = Path(tempfile.mkdtemp(prefix="kubo-install-", dir=self._scratch_root))
        version: str | None = None
        try:
            self._transition(InstallState.RESOLVING_VERSION)
            version = self._resolver.resolve(pinned)
            url = build_download_url(
                target,
                version,
                base_url=self.config.release.dist_base_url,
                package=self.config.release.package_name,
            )

            self._transition(InstallState.DOWNLOADING)
            archive = scratch / archive_filename(url)
            self._downloader.download(url, archive)

            self._transition(InstallState.EXTRACTING)
            extract_dir = self._extractor.extract(archive, scratch / "extracted")

            self._transition(InstallState.PLACING)
            installed = self._binary_installer.place(extract_dir, target)

            outcome = InstallationOutcome(
                status=OutcomeStatus.INSTALLED_MANUALLY,
                version=version,
                binary_path=str(installed),
            )

            self._transition(InstallState.CONFIGURING_PATH)
            self._configure_path(target, outcome)

            self._transition(InstallState.VERIFYING)
            check = self._verifier.verify(target)
            if check.ok:
                self._transition(InstallState.INSTALLED)
                outcome.verified = True
                outcome.message = f"Installed {check.version or version}"
            else:
                self._transition(InstallState.VERIFICATION_FAILED)
                outcome.message = (
                    f"Installed {version} to {installed}, but it is not yet "
                    f"runnable from this shell ({check.detail})"
                )
                outcome.warnings.extend(check.guidance)

            outcome.history = list(self._history)
            return outcome

        except InstallerError as exc:
            logger.error("Installation failed: %s", exc)
            self._transition(InstallState.FAILED)
            outcome = self._failed(_reason_for(exc), str(exc))
            outcome.version = version
            return outcome
        except Exception as exc:
            logger.exception("Unexpected error during installation")
            self._transition(InstallState.FAILED)
            outcome = self._failed(FailureReason.UNEXPECTED, f"{type(exc).__name__}: {exc}")
            outcome.version = version
            return outcome
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

    # ── PATH handling ─────────────────────────────────────────

    def _configure_path(self, target: InstallTarget, outcome: InstallationOutcome) -> None:
        if not target.is_windows:
            return
        try:
            self._path_configurator_for().ensure(target)
        except PathUpdateError as exc:
            logger.warning("%s", exc)
            outcome.warnings.extend([
                f"Could not update PATH automatically: {exc}",
                f"Add {target.install_dir} to your user PATH manually "
                "(System > Advanced system settings > Environment Variables) "
                "and restart your terminal",
            ])

    def _repair_path(self, target: InstallTarget, outcome: InstallationOutcome) -> None:
        if target.is_windows:
            logger.info("Binary present but not on PATH; updating user PATH")
            self._configure_path(target, outcome)
        else:
            outcome.warnings.append(
                f"{target.binary_name} is installed at {outcome.binary_path} "
                f"but {target.install_dir} is not on PATH"
            )

    def _path_configurator_for(self) -> PathConfigurator:
        if self._path_configurator is None:
            self._path_configurator = PathConfigurator()
        return self._path_configurator

    # ── State bookkeeping ─────────────────────────────────────

    def _transition(self, state: InstallState) -> None:
        logger.debug("Installer state → %s", state.value)
        self._history.append(state)

    def _failed(self, reason: FailureReason, message: str) -> InstallationOutcome:
        return InstallationOutcome(
            status=OutcomeStatus.FAILED,
            reason=reason,
            message=message,
            history=list(self._history),
        )


def install(config: ProvisionerConfig, client: HttpClient | None = None, **kwargs) -> InstallationOutcome:
    """Run the installer with default collaborators."""
    run_kwargs = {
        k: kwargs.pop(k) for k in ("pinned_version", "use_package_manager") if k in kwargs
    }
    return Installer(config, client, **kwargs).run(**run_kwargs)


def ensure_dependency(config: ProvisionerConfig, client: HttpClient | None = None, **kwargs) -> bool:
    """Downstream contract: is the daemon binary ready to use?"""
    return install(config, client, **kwargs).ready
