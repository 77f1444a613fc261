"""
L4 Execution — Make the install directory visible on PATH (Windows).

POSIX installs land in a directory that is already on PATH, so this is
a no-op there.  On Windows the *user* PATH is updated (no elevation
needed) and the current process environment is patched so the binary
can be verified without opening a new shell.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import MutableMapping, Protocol

from provisioner.services.installer.domain.errors import PathUpdateError
from provisioner.services.installer.domain.models import InstallTarget
from provisioner.services.installer.execution.subprocess_runner import (
    CommandRunner,
    run_command,
)

logger = logging.getLogger(__name__)

_SEP = ";"


class UserPathStore(Protocol):
    """Reads and writes the persistent user-scope PATH value."""

    def get_user_path(self) -> str: ...

    def set_user_path(self, value: str) -> None: ...


class PowerShellPathStore:
    """User PATH via ``[Environment]::Get/SetEnvironmentVariable``.

    Setting through .NET (rather than the registry directly) broadcasts
    the change, so new shells pick it up without a logoff.
    """

    _ENV_VAR = "PROVISIONER_USER_PATH"

    def __init__(self, runner: CommandRunner = run_command):
        self._run = runner

    def get_user_path(self) -> str:
        result = self._run(
            _powershell("[Environment]::GetEnvironmentVariable('Path', 'User')"),
            timeout=30,
        )
        if not result.get("ok"):
            raise PathUpdateError(f"Cannot read user PATH: {result.get('error')}")
        return result.get("stdout", "").strip()

    def set_user_path(self, value: str) -> None:
        # Value goes through the environment to avoid quoting issues.
        result = self._run(
            _powershell(
                f"[Environment]::SetEnvironmentVariable('Path', $env:{self._ENV_VAR}, 'User')"
            ),
            timeout=30,
            env_overrides={self._ENV_VAR: value},
        )
        if not result.get("ok"):
            raise PathUpdateError(f"Cannot write user PATH: {result.get('error')}")


def _powershell(script: str) -> list[str]:
    return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]


def _normalize(entry: str) -> str:
    return entry.strip().rstrip("\\/").lower()


def path_contains(path_value: str, directory: str) -> bool:
    """Whether a ``;``-separated PATH already lists ``directory``."""
    wanted = _normalize(directory)
    return any(_normalize(e) == wanted for e in path_value.split(_SEP) if e.strip())


def append_entry(path_value: str, directory: str) -> str:
    """Append ``directory`` unless present.  Never duplicates."""
    if path_contains(path_value, directory):
        return path_value
    base = path_value.rstrip(_SEP)
    return f"{base}{_SEP}{directory}" if base else directory


class PathConfigurator:
    """Idempotently add the install directory to the user PATH."""

    def __init__(
        self,
        store: UserPathStore | None = None,
        *,
        environ: MutableMapping[str, str] | None = None,
    ):
        self._store = store or PowerShellPathStore()
        self._environ = os.environ if environ is None else environ

    def ensure(self, target: InstallTarget) -> bool:
        """Add ``target.install_dir`` to PATH.  Returns True if anything changed.

        Raises:
            PathUpdateError: The user PATH could not be read or written.
        """
        if not target.is_windows:
            return False

        directory = str(Path(target.install_dir))
        changed = False

        current = self._store.get_user_path()
        if path_contains(current, directory):
            logger.info("%s already in user PATH", directory)
        else:
            self._store.set_user_path(append_entry(current, directory))
            logger.info("Added %s to user PATH", directory)
            changed = True

        process_path = self._environ.get("PATH", "")
        if not path_contains(process_path, directory):
            self._environ["PATH"] = append_entry(process_path, directory)
            changed = True

        return changed
