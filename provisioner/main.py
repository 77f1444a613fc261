"""
Kubo provisioner — CLI entrypoint.

Usage:
    provisioner --help
    provisioner install
    provisioner up
    provisioner check
    provisioner config check
    provisioner daemon start
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provisioner.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Kubo provisioner — install and run the IPFS daemon."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


def load_config_or_exit(ctx: click.Context):
    """Load config for a command; print and exit 1 on ConfigError."""
    from provisioner.core.config.loader import ConfigError, load_config

    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


class ClickProgress:
    """Download progress on stderr, one line rewritten in place."""

    def __init__(self) -> None:
        self._last: int | None = None
        self._received = 0
        self._open = False

    def on_progress(self, received: int, total: int | None) -> None:
        from provisioner.services.installer.domain.download_helpers import (
            format_size,
            progress_percent,
        )

        if received < self._received:
            # retry: keep the failed attempt's line, start a fresh one
            self.finish()
            self._last = None
        self._received = received

        pct = progress_percent(received, total)
        if pct is None:
            click.echo(f"\r   ⬇️  {format_size(received)} (size unknown)", nl=False, err=True)
            self._open = True
            return
        if pct == self._last:
            return
        self._last = pct
        click.echo(
            f"\r   ⬇️  {pct:3d}%  {format_size(received)} / {format_size(total)}",
            nl=False,
            err=True,
        )
        self._open = True
        if pct >= 100:
            self.finish()

    def finish(self) -> None:
        """End the progress line, if one is still open."""
        if self._open:
            click.echo(err=True)
            self._open = False


@cli.command()
@click.option("--version", "pinned_version", default=None, help="Install this release tag instead of the latest.")
@click.option("--no-package-manager", is_flag=True, help="Skip brew/apt/yum/winget, always download.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, pinned_version: str | None, no_package_manager: bool, as_json: bool) -> None:
    """Install the IPFS (kubo) binary if it isn't already present."""
    from provisioner.services.installer import Installer, OutcomeStatus

    config = load_config_or_exit(ctx)
    quiet = ctx.obj.get("quiet", False)

    progress = None if (as_json or quiet) else ClickProgress()
    installer = Installer(config, progress=progress)
    outcome = installer.run(
        pinned_version=pinned_version,
        use_package_manager=False if no_package_manager else None,
    )
    if progress is not None:
        progress.finish()

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        sys.exit(0 if outcome.ready else 1)
        return

    if outcome.status is OutcomeStatus.FAILED:
        click.secho(f"❌ {outcome.message}", fg="red", bold=True)
        if outcome.reason:
            click.echo(f"   Reason: {outcome.reason.value}")
        sys.exit(1)

    labels = {
        OutcomeStatus.ALREADY_PRESENT: "✅ IPFS is already installed",
        OutcomeStatus.INSTALLED_VIA_PACKAGE_MANAGER: "✅ IPFS installed via package manager",
        OutcomeStatus.INSTALLED_MANUALLY: "✅ IPFS installed",
    }
    click.secho(labels[outcome.status], fg="green", bold=True)
    if not quiet:
        if outcome.message:
            click.echo(f"   {outcome.message}")
        if outcome.binary_path:
            click.echo(f"   📍 {outcome.binary_path}")
        if outcome.version:
            click.echo(f"   🏷️  {outcome.version}")

    if outcome.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in outcome.warnings:
            click.echo(f"   • {warn}")

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Report whether the IPFS binary is installed."""
    from provisioner.services.installer.detection import PlatformProbe, PresenceChecker
    from provisioner.services.installer.domain.errors import UnsupportedPlatformError

    config = load_config_or_exit(ctx)

    try:
        target = PlatformProbe(config).probe()
    except UnsupportedPlatformError as e:
        if as_json:
            click.echo(json.dumps({"installed": False, "error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    report = PresenceChecker(target).check()

    if as_json:
        data = report.to_dict()
        data["platform"] = f"{target.os}-{target.arch}"
        click.echo(json.dumps(data, indent=2))
        sys.exit(0 if report.installed else 1)
        return

    click.echo(f"   Platform: {target.os}-{target.arch}")
    if report.installed:
        click.secho(f"✅ IPFS installed: {report.version or 'unknown version'}", fg="green", bold=True)
        click.echo(f"   📍 {report.path}")
        if not report.on_path:
            click.secho(f"   ⚠️  {report.detail}", fg="yellow")
    else:
        click.secho("❌ IPFS not installed", fg="red", bold=True)
        if report.detail:
            click.echo(f"   {report.detail}")
        sys.exit(1)


@cli.command()
@click.option("--version", "pinned_version", default=None, help="Install this release tag instead of the latest.")
@click.option("--no-package-manager", is_flag=True, help="Skip brew/apt/yum/winget, always download.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def up(ctx: click.Context, pinned_version: str | None, no_package_manager: bool, as_json: bool) -> None:
    """Install IPFS if needed, then init, configure and start the daemon."""
    from provisioner.core.use_cases.bring_up import bring_up
    from provisioner.services.daemon import InitResult, StartResult

    config = load_config_or_exit(ctx)
    quiet = ctx.obj.get("quiet", False)

    progress = None if (as_json or quiet) else ClickProgress()
    result = bring_up(
        config,
        pinned_version=pinned_version,
        use_package_manager=False if no_package_manager else None,
        progress=progress,
    )
    if progress is not None:
        progress.finish()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    outcome = result.outcome
    if not outcome.ready:
        click.secho(f"❌ {outcome.message}", fg="red", bold=True)
        if outcome.reason:
            click.echo(f"   Reason: {outcome.reason.value}")
        click.echo("   Daemon setup skipped.")
        sys.exit(1)

    click.secho(f"✅ IPFS ready ({outcome.status.value.replace('_', ' ')})", fg="green", bold=True)
    if result.init is InitResult.ALREADY_INITIALIZED:
        click.echo("   📦 Repo already initialized")
    elif result.init is not None:
        click.echo("   📦 Repo initialized")
    for key in result.configured:
        click.echo(f"   ⚙️  {key}")

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", bold=True)
        sys.exit(1)

    if result.start is StartResult.ALREADY_RUNNING:
        click.secho("ℹ️  IPFS daemon is already running", fg="cyan")
    else:
        click.secho("✅ IPFS daemon started", fg="green", bold=True)
        click.echo(f"   📄 Log: {result.log_path}")

    if outcome.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in outcome.warnings:
            click.echo(f"   • {warn}")

    click.echo()


@cli.group()
def config() -> None:
    """Provisioner configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate provisioner.yml configuration."""
    from provisioner.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        cfg = result.config
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File: {result.config_path}")
        click.echo(f"   Binary: {cfg.binary_name}")
        click.echo(f"   Version: {cfg.release.pinned_version or 'latest'} (fallback {cfg.release.fallback_version})")
        click.echo(f"   Downloads: {cfg.release.dist_base_url}")
        click.echo(f"   Package managers: {'on' if cfg.use_package_manager else 'off'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-groups ─────────────────────────────────────────

from provisioner.ui.cli.daemon import daemon  # noqa: E402

cli.add_command(daemon)


if __name__ == "__main__":
    cli()
