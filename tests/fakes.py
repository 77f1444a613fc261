"""
Test doubles and archive builders shared by the test modules.

Nothing here touches the network or runs real commands: HTTP goes
through ``FakeHttpClient``, subprocesses through ``FakeRunner`` and
executable lookup through ``FakeWhich``.
"""

from __future__ import annotations

import io
import tarfile
import zipfile


# ── HTTP ────────────────────────────────────────────────────────


class FakeResponse:
    """Minimal stand-in for an ``http.client.HTTPResponse``."""

    def __init__(
        self,
        body: bytes = b"",
        *,
        status: int = 200,
        headers: dict[str, str] | None = None,
        send_length: bool = True,
        fail_after: int | None = None,
    ):
        self.status = status
        self._body = body
        self._pos = 0
        self._fail_after = fail_after
        self.headers = dict(headers or {})
        if send_length and "Content-Length" not in self.headers:
            self.headers["Content-Length"] = str(len(body))

    def read(self, n: int = -1) -> bytes:
        if self._fail_after is not None and self._pos >= self._fail_after:
            raise ConnectionResetError("connection reset by peer")
        end = len(self._body) if n is None or n < 0 else self._pos + n
        if self._fail_after is not None:
            end = min(end, self._fail_after)
        chunk = self._body[self._pos:end]
        self._pos += len(chunk)
        return chunk

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeHttpClient:
    """Serves queued responses (or raises queued exceptions) in order."""

    def __init__(self, responses=None, *, json_data=None, json_error: Exception | None = None):
        self.responses = list(responses or [])
        self.json_data = json_data
        self.json_error = json_error
        self.opened: list[str] = []
        self.json_requests: list[str] = []
        self.headers: list[dict] = []

    @property
    def calls(self) -> int:
        return len(self.opened) + len(self.json_requests)

    def open(self, url, *, timeout, headers=None):
        self.opened.append(url)
        self.headers.append(dict(headers or {}))
        if not self.responses:
            raise AssertionError(f"unexpected request: {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get_json(self, url, *, timeout, headers=None):
        self.json_requests.append(url)
        self.headers.append(dict(headers or {}))
        if self.json_error is not None:
            raise self.json_error
        return self.json_data


# ── Subprocess / PATH ───────────────────────────────────────────


NOT_FOUND = {"ok": False, "error": "Command not found", "not_found": True}


def ok(stdout: str = "") -> dict:
    return {"ok": True, "stdout": stdout, "stderr": "", "returncode": 0, "elapsed_ms": 1}


def failed(stderr: str = "", code: int = 1) -> dict:
    return {
        "ok": False,
        "error": f"Command failed (exit {code})",
        "stdout": "",
        "stderr": stderr,
        "returncode": code,
        "elapsed_ms": 1,
    }


class FakeRunner:
    """Answers commands by substring match on the joined command line.

    Rules are checked in insertion order; a rule value may be a dict or
    a list of dicts consumed one per call (the last one repeats).
    """

    def __init__(self, rules: dict | None = None, default: dict | None = None):
        self.rules = dict(rules or {})
        self.default = default if default is not None else NOT_FOUND
        self.calls: list[list[str]] = []
        self.kwargs: list[dict] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        self.kwargs.append(kwargs)
        line = " ".join(cmd)
        for key, result in self.rules.items():
            if key in line:
                if isinstance(result, list):
                    return result.pop(0) if len(result) > 1 else result[0]
                return result
        return self.default

    def ran(self, fragment: str) -> bool:
        return any(fragment in " ".join(c) for c in self.calls)


class FakeWhich:
    """``shutil.which`` replacement backed by a name → path map."""

    def __init__(self, found: dict[str, str] | None = None):
        self.found = dict(found or {})
        self.lookups: list[str] = []

    def __call__(self, name, path=None, **kwargs):
        self.lookups.append(name)
        return self.found.get(name)


class RecordingProgress:
    def __init__(self) -> None:
        self.events: list[tuple[int, int | None]] = []

    def on_progress(self, received, total):
        self.events.append((received, total))


class FakePathStore:
    """In-memory user PATH."""

    def __init__(self, value: str = "", *, fail_on_set: bool = False):
        self.value = value
        self.fail_on_set = fail_on_set
        self.writes = 0

    def get_user_path(self) -> str:
        return self.value

    def set_user_path(self, value: str) -> None:
        from provisioner.services.installer.domain.errors import PathUpdateError

        if self.fail_on_set:
            raise PathUpdateError("access denied")
        self.writes += 1
        self.value = value


# ── Archives ────────────────────────────────────────────────────


BINARY_BYTES = b"#!/bin/sh\necho 'ipfs version 0.22.0'\n"


def make_tarball(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


def kubo_tarball(binary: str = "ipfs") -> bytes:
    return make_tarball({
        f"kubo/{binary}": BINARY_BYTES,
        "kubo/LICENSE": b"MIT",
        "kubo/install.sh": b"#!/bin/sh\n",
    })


def kubo_zip(binary: str = "ipfs.exe") -> bytes:
    return make_zip({f"kubo/{binary}": BINARY_BYTES, "kubo/LICENSE": b"MIT"})
