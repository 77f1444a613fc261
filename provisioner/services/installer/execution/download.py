"""
L4 Execution — Archive download with retry and progress.

Streams the response body straight to disk in chunks; archives can be
hundreds of megabytes.  Transient failures are retried with
exponential backoff.  A 404 is final: the archive does not exist for
this version/platform and asking again will not create it.
"""

from __future__ import annotations

import http.client
import logging
import time
import urllib.error
from pathlib import Path
from typing import Callable, Protocol

from provisioner.core.http_client import HttpClient
from provisioner.core.reliability.retry_policy import RetryPolicy
from provisioner.services.installer.domain.download_helpers import (
    format_size,
    progress_percent,
)
from provisioner.services.installer.domain.errors import (
    ArchiveNotFoundError,
    DownloadFailedError,
)
from provisioner.services.installer.domain.models import DownloadJob

logger = logging.getLogger(__name__)


class ProgressListener(Protocol):
    """Notified synchronously after every chunk written to disk."""

    def on_progress(self, received: int, total: int | None) -> None: ...


class LoggingProgress:
    """Default listener: logs every 5%, or every 5 MB when the size is unknown.

    A drop in ``received`` means the downloader started a new attempt,
    which is logged from the beginning again.
    """

    def __init__(self) -> None:
        self._last = -1
        self._received = 0

    def on_progress(self, received: int, total: int | None) -> None:
        if received < self._received:
            self._last = -1
        self._received = received

        pct = progress_percent(received, total)
        if pct is None:
            mark = received // (5 * 1024 * 1024)
            if mark > self._last:
                self._last = mark
                logger.info("Download progress: unknown%% (%s)", format_size(received))
            return
        step = pct - pct % 5
        if step > self._last:
            self._last = step
            logger.info(
                "Download progress: %d%% (%s / %s)",
                pct, format_size(received), format_size(total),
            )


class _TransientError(Exception):
    """Retryable failure detected after the connection was established."""


_TRANSIENT = (
    _TransientError,
    urllib.error.URLError,
    http.client.HTTPException,
    ConnectionError,
    TimeoutError,
    OSError,
)


class RetryingDownloader:
    """Fetch one archive, retrying transient failures."""

    def __init__(
        self,
        client: HttpClient,
        *,
        policy: RetryPolicy,
        timeout: float = 30.0,
        chunk_size: int = 64 * 1024,
        progress: ProgressListener | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client
        self._policy = policy
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._progress = progress
        self._sleep = sleep

    def download(self, url: str, dest_path: Path) -> DownloadJob:
        """Download ``url`` to ``dest_path``.

        Raises:
            ArchiveNotFoundError: On HTTP 404 (no retries).
            DownloadFailedError: When every attempt failed.  The partial
                file has been removed.
        """
        job = DownloadJob(
            url=url,
            dest_path=Path(dest_path),
            max_attempts=self._policy.max_attempts,
            timeout=self._timeout,
            backoff=self._policy.base_delay,
        )
        job.dest_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s", url)

        last_error: Exception | None = None
        while True:
            job.attempt += 1
            try:
                self._fetch(job)
                logger.info(
                    "Downloaded %s to %s", format_size(job.bytes_received), job.dest_path,
                )
                return job
            except urllib.error.HTTPError as e:
                e.close()
                if e.code == 404:
                    _discard(job.dest_path)
                    raise ArchiveNotFoundError(url) from e
                last_error = e
            except _TRANSIENT as e:
                last_error = e

            logger.warning(
                "Download attempt %d/%d failed: %s", job.attempt, job.max_attempts, last_error,
            )
            if not self._policy.should_retry(job.attempt):
                break
            job.backoff = self._policy.delay_for(job.attempt)
            logger.info("Retrying in %.1fs", job.backoff)
            self._sleep(job.backoff)

        _discard(job.dest_path)
        raise DownloadFailedError(url, job.attempt, last_error)

    def _fetch(self, job: DownloadJob) -> None:
        job.bytes_received = 0
        with self._client.open(
            job.url,
            timeout=job.timeout,
            headers={"Accept": "application/octet-stream"},
        ) as resp:
            status = getattr(resp, "status", 200)
            if status == 404:
                raise ArchiveNotFoundError(job.url)
            if not 200 <= status < 300:
                raise _TransientError(f"HTTP {status}")

            length = resp.headers.get("Content-Length")
            job.total_bytes = int(length) if length and length.isdigit() else None

            with open(job.dest_path, "wb") as f:
                while True:
                    chunk = resp.read(self._chunk_size)
                    if not chunk:
                        break
                    f.write(chunk)
                    job.bytes_received += len(chunk)
                    if self._progress is not None:
                        self._progress.on_progress(job.bytes_received, job.total_bytes)

        if job.total_bytes is not None and job.bytes_received < job.total_bytes:
            raise _TransientError(
                f"Connection closed after {format_size(job.bytes_received)} "
                f"of {format_size(job.total_bytes)}"
            )


def _discard(path: Path) -> None:
    path.unlink(missing_ok=True)
