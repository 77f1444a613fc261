"""
CLI commands for the IPFS daemon.

Thin wrappers over ``provisioner.services.daemon``.
"""

from __future__ import annotations

import json
import sys

import click


def _supervisor(ctx: click.Context):
    """Build a DaemonSupervisor from the active config."""
    from provisioner.core.config.loader import ConfigError, load_config
    from provisioner.services.daemon import DaemonSupervisor

    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    return DaemonSupervisor(config.daemon, binary=config.binary_name)


def _fail(e: Exception, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"ok": False, "error": str(e)}, indent=2))
    else:
        click.secho(f"❌ {e}", fg="red")
    sys.exit(1)


@click.group("daemon")
def daemon() -> None:
    """IPFS daemon — repo init, configuration, start and status."""


@daemon.command("init")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def init(ctx: click.Context, as_json: bool) -> None:
    """Initialize the IPFS repo (no-op if it exists)."""
    from provisioner.services.daemon import DaemonError, InitResult

    try:
        result = _supervisor(ctx).init()
    except DaemonError as e:
        _fail(e, as_json)
        return

    if as_json:
        click.echo(json.dumps({"ok": True, "result": result.value}, indent=2))
    elif result is InitResult.ALREADY_INITIALIZED:
        click.secho("ℹ️  IPFS repo already initialized", fg="cyan")
    else:
        click.secho("✅ IPFS repo initialized", fg="green", bold=True)


@daemon.command("configure")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def configure(ctx: click.Context, as_json: bool) -> None:
    """Apply storage quota and API CORS settings."""
    from provisioner.services.daemon import DaemonError

    sup = _supervisor(ctx)
    try:
        keys = sup.configure()
    except DaemonError as e:
        _fail(e, as_json)
        return

    if as_json:
        click.echo(json.dumps({"ok": True, "keys": keys}, indent=2))
        return

    click.secho("✅ IPFS configured", fg="green", bold=True)
    for key in keys:
        click.echo(f"   • {key}")


@daemon.command("start")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def start(ctx: click.Context, as_json: bool) -> None:
    """Start the daemon in the background and wait until it is ready."""
    from provisioner.services.daemon import DaemonError, StartResult

    sup = _supervisor(ctx)
    try:
        result = sup.start()
    except DaemonError as e:
        _fail(e, as_json)
        return

    if as_json:
        click.echo(json.dumps({"ok": True, "result": result.value, "log": str(sup.log_path)}, indent=2))
    elif result is StartResult.ALREADY_RUNNING:
        click.secho("ℹ️  IPFS daemon is already running", fg="cyan")
    else:
        click.secho("✅ IPFS daemon started", fg="green", bold=True)
        click.echo(f"   📄 Log: {sup.log_path}")


@daemon.command("status")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show whether the daemon is running and how much the repo holds."""
    from provisioner.services.installer.domain.download_helpers import format_size

    st = _supervisor(ctx).status()

    if as_json:
        click.echo(json.dumps(st.to_dict(), indent=2))
        sys.exit(0 if st.running else 1)
        return

    if st.running:
        click.secho("🟢 IPFS daemon is running", fg="green", bold=True)
    else:
        click.secho("🔴 IPFS daemon is not running", fg="red", bold=True)
    if st.repo_size is not None:
        click.echo(f"   💾 Repo: {format_size(st.repo_size)} / {st.storage_max}")
    if not st.running:
        sys.exit(1)
