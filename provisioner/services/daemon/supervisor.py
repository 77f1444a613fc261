"""
Daemon supervision — initialise, configure, start and inspect kubo.

All commands go through the shared subprocess runner so they get the
same timeout/not-found handling as the installer.  ``IPFS_PATH`` is
exported from ``daemon.repo_path`` when configured.

The daemon is spawned detached with its output sent to a log file;
startup is detected by polling that file for the ready marker.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from provisioner.services.installer.execution.subprocess_runner import (
    CommandRunner,
    run_command,
)

if TYPE_CHECKING:
    from provisioner.core.models.config import DaemonSettings

logger = logging.getLogger(__name__)


class DaemonError(Exception):
    """A daemon command failed in a way that isn't a benign no-op."""


class InitResult(str, Enum):
    INITIALIZED = "initialized"
    ALREADY_INITIALIZED = "already_initialized"


class StartResult(str, Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already_running"


@dataclass
class DaemonStatus:
    running: bool
    repo_size: int | None = None
    storage_max: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "repo_size": self.repo_size,
            "storage_max": self.storage_max,
        }


class DaemonSupervisor:
    """Thin wrapper around the ``ipfs`` CLI for repo and daemon lifecycle."""

    def __init__(
        self,
        settings: DaemonSettings,
        *,
        binary: str = "ipfs",
        runner: CommandRunner = run_command,
        popen: Callable[..., Any] = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        poll_interval: float = 0.5,
    ):
        self.settings = settings
        self.binary = binary
        self._run = runner
        self._popen = popen
        self._sleep = sleep
        self._clock = clock
        self._poll_interval = poll_interval

    # ── Helpers ───────────────────────────────────────────────

    def _env(self) -> dict[str, str] | None:
        if not self.settings.repo_path:
            return None
        return {"IPFS_PATH": os.path.expanduser(self.settings.repo_path)}

    def _ipfs(self, *args: str, timeout: int = 60) -> dict:
        return self._run([self.binary, *args], timeout=timeout, env_overrides=self._env())

    @property
    def log_path(self) -> Path:
        return Path(os.path.expanduser(self.settings.log_file))

    # ── Repo ──────────────────────────────────────────────────

    def init(self) -> InitResult:
        """Create the repo.  An existing repo is not an error."""
        result = self._ipfs("init")
        if result.get("ok"):
            logger.info("IPFS repo initialized")
            return InitResult.INITIALIZED

        output = " ".join(
            str(result.get(k, "")) for k in ("stdout", "stderr", "error")
        )
        if "already" in output.lower():
            logger.info("IPFS repo already initialized")
            return InitResult.ALREADY_INITIALIZED

        raise DaemonError(f"ipfs init failed: {_detail(result)}")

    def configure(self) -> list[str]:
        """Apply storage quota, GC watermark and API CORS headers.

        Returns the config keys that were written.
        """
        s = self.settings
        entries = [
            ("Datastore.StorageMax", s.storage_max),
            ("Datastore.StorageGCWatermark", s.gc_watermark),
            ("API.HTTPHeaders.Access-Control-Allow-Origin", s.cors_allow_origin),
            ("API.HTTPHeaders.Access-Control-Allow-Methods", s.cors_allow_methods),
        ]
        applied = []
        for key, value in entries:
            result = self._ipfs("config", "--json", key, json.dumps(value))
            if not result.get("ok"):
                raise DaemonError(f"ipfs config {key} failed: {_detail(result)}")
            logger.debug("Set %s = %s", key, value)
            applied.append(key)
        logger.info("IPFS configured (storage max %s)", s.storage_max)
        return applied

    def repo_size(self) -> int:
        """Repo size in bytes, from ``ipfs repo stat --size-only``."""
        result = self._ipfs("repo", "stat", "--size-only")
        if not result.get("ok"):
            raise DaemonError(f"ipfs repo stat failed: {_detail(result)}")
        for line in result.get("stdout", "").splitlines():
            key, _, value = line.partition(":")
            if key.strip() == "RepoSize":
                try:
                    return int(value.strip())
                except ValueError:
                    break
        raise DaemonError("ipfs repo stat output has no RepoSize")

    # ── Daemon ────────────────────────────────────────────────

    def is_running(self) -> bool:
        """A daemon answers ``swarm peers``; offline mode doesn't."""
        return bool(self._ipfs("swarm", "peers", timeout=15).get("ok"))

    def status(self) -> DaemonStatus:
        running = self.is_running()
        try:
            size = self.repo_size()
        except DaemonError as e:
            logger.debug("Repo size unavailable: %s", e)
            size = None
        return DaemonStatus(running=running, repo_size=size, storage_max=self.settings.storage_max)

    def start(self) -> StartResult:
        """Start ``ipfs daemon`` in the background and wait until it's ready.

        Raises:
            DaemonError: The process exited, couldn't be spawned, or the
                ready marker didn't appear within ``ready_timeout``.
        """
        if self.is_running():
            logger.info("IPFS daemon is already running")
            return StartResult.ALREADY_RUNNING

        log_path = self.log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        env = dict(os.environ)
        env.update(self._env() or {})

        logger.info("Starting IPFS daemon (log: %s)", log_path)
        try:
            with open(log_path, "wb") as log:
                proc = self._popen(
                    [self.binary, "daemon"],
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    env=env,
                    start_new_session=True,
                )
        except OSError as e:
            raise DaemonError(f"Cannot start ipfs daemon: {e}") from e

        deadline = self._clock() + self.settings.ready_timeout
        while True:
            output = _read_text(log_path)
            if self.settings.ready_marker in output:
                logger.info("IPFS daemon started (pid %s)", getattr(proc, "pid", "?"))
                return StartResult.STARTED

            code = proc.poll()
            if code is not None:
                raise DaemonError(
                    f"ipfs daemon exited with code {code}: {_tail(output)}"
                )

            if self._clock() >= deadline:
                _stop(proc)
                raise DaemonError(
                    f"ipfs daemon not ready after {self.settings.ready_timeout:.0f}s "
                    f"(see {log_path})"
                )
            self._sleep(self._poll_interval)


def _stop(proc, grace: float = 10.0) -> None:
    proc.terminate()
    try:
        proc.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def _detail(result: dict) -> str:
    return (result.get("stderr") or result.get("error") or "unknown error").strip()


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def _tail(output: str, lines: int = 5) -> str:
    return " | ".join(output.strip().splitlines()[-lines:]) or "no output"
