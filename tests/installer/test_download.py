"""
Installer — retrying download, backoff and progress.
"""

from __future__ import annotations

import io
import socket
import urllib.error

import pytest

from provisioner.core.reliability.retry_policy import RetryPolicy
from provisioner.services.installer.domain.download_helpers import (
    format_size,
    progress_percent,
)
from provisioner.services.installer.domain.errors import (
    ArchiveNotFoundError,
    DownloadFailedError,
)
from provisioner.services.installer.execution.download import (
    LoggingProgress,
    RetryingDownloader,
)
from tests.fakes import FakeHttpClient, FakeResponse, RecordingProgress

URL = "https://dist.ipfs.tech/kubo/v0.22.0/kubo_v0.22.0_linux-amd64.tar.gz"
BODY = bytes(range(256)) * 40  # 10 KiB


def _downloader(client, sleeps, *, attempts=4, progress=None, chunk_size=1024):
    return RetryingDownloader(
        client,
        policy=RetryPolicy(max_attempts=attempts, base_delay=2.0, factor=1.5),
        timeout=5.0,
        chunk_size=chunk_size,
        progress=progress,
        sleep=sleeps.append,
    )


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(URL, code, "error", {}, None)


class TestSuccessfulDownload:
    def test_writes_file(self, tmp_path, sleeps):
        client = FakeHttpClient([FakeResponse(BODY)])
        dest = tmp_path / "archive.tar.gz"
        job = _downloader(client, sleeps).download(URL, dest)
        assert dest.read_bytes() == BODY
        assert job.attempt == 1
        assert job.bytes_received == len(BODY)
        assert job.total_bytes == len(BODY)
        assert sleeps == []

    def test_creates_parent_dir(self, tmp_path, sleeps):
        client = FakeHttpClient([FakeResponse(b"abc")])
        dest = tmp_path / "nested" / "dir" / "a.tar.gz"
        _downloader(client, sleeps).download(URL, dest)
        assert dest.read_bytes() == b"abc"

    def test_requests_binary_content(self, tmp_path, sleeps):
        client = FakeHttpClient([FakeResponse(b"abc")])
        _downloader(client, sleeps).download(URL, tmp_path / "a")
        assert client.headers[0]["Accept"] == "application/octet-stream"

    def test_recovers_after_transient_failures(self, tmp_path, sleeps):
        client = FakeHttpClient([
            urllib.error.URLError("connection refused"),
            _http_error(503),
            FakeResponse(BODY),
        ])
        dest = tmp_path / "a.tar.gz"
        job = _downloader(client, sleeps).download(URL, dest)
        assert job.attempt == 3
        assert dest.read_bytes() == BODY
        assert sleeps == [2.0, 3.0]


class TestProgress:
    def test_reports_every_chunk(self, tmp_path, sleeps):
        progress = RecordingProgress()
        client = FakeHttpClient([FakeResponse(BODY)])
        _downloader(client, sleeps, progress=progress, chunk_size=4096).download(URL, tmp_path / "a")
        assert progress.events == [
            (4096, len(BODY)),
            (8192, len(BODY)),
            (len(BODY), len(BODY)),
        ]

    def test_unknown_length(self, tmp_path, sleeps):
        progress = RecordingProgress()
        client = FakeHttpClient([FakeResponse(BODY, send_length=False)])
        job = _downloader(client, sleeps, progress=progress, chunk_size=4096).download(URL, tmp_path / "a")
        assert job.total_bytes is None
        assert all(total is None for _, total in progress.events)
        assert progress.events[-1][0] == len(BODY)

    def test_logging_progress_steps_of_five_percent(self, caplog):
        caplog.set_level("INFO", logger="provisioner.services.installer.execution.download")
        listener = LoggingProgress()
        for received in range(0, 101):
            listener.on_progress(received, 100)
        lines = [r.getMessage() for r in caplog.records]
        assert len(lines) == 21  # 0%, 5%, ... 100%
        assert lines[-1].startswith("Download progress: 100%")

    def test_logging_progress_restarts_on_retry(self, caplog):
        caplog.set_level("INFO", logger="provisioner.services.installer.execution.download")
        listener = LoggingProgress()
        for received in (10, 30, 60):
            listener.on_progress(received, 100)
        for received in (10, 30, 60, 100):
            listener.on_progress(received, 100)
        lines = [r.getMessage() for r in caplog.records]
        assert len(lines) == 7
        assert lines[3].startswith("Download progress: 10%")

    def test_retry_through_downloader_logs_from_start(self, tmp_path, sleeps, caplog):
        caplog.set_level("INFO", logger="provisioner.services.installer.execution.download")
        client = FakeHttpClient([
            FakeResponse(BODY, fail_after=8192),
            FakeResponse(BODY),
        ])
        _downloader(client, sleeps, progress=LoggingProgress(), chunk_size=4096).download(URL, tmp_path / "a")
        progress_lines = [
            r.getMessage() for r in caplog.records if r.getMessage().startswith("Download progress")
        ]
        assert sum(line.startswith("Download progress: 40%") for line in progress_lines) == 2


class TestRetryExhaustion:
    def test_exact_attempt_count(self, tmp_path, sleeps):
        client = FakeHttpClient([socket.timeout("timed out")] * 4)
        with pytest.raises(DownloadFailedError) as exc_info:
            _downloader(client, sleeps, attempts=4).download(URL, tmp_path / "a")
        assert exc_info.value.attempts == 4
        assert len(client.opened) == 4

    def test_strictly_increasing_backoff(self, tmp_path, sleeps):
        client = FakeHttpClient([ConnectionResetError("reset")] * 4)
        with pytest.raises(DownloadFailedError):
            _downloader(client, sleeps, attempts=4).download(URL, tmp_path / "a")
        assert sleeps == [2.0, 3.0, 4.5]
        assert all(a < b for a, b in zip(sleeps, sleeps[1:]))

    def test_partial_file_removed(self, tmp_path, sleeps):
        client = FakeHttpClient([
            FakeResponse(BODY, fail_after=3000),
            FakeResponse(BODY, fail_after=5000),
        ])
        dest = tmp_path / "a.tar.gz"
        with pytest.raises(DownloadFailedError):
            _downloader(client, sleeps, attempts=2).download(URL, dest)
        assert not dest.exists()

    def test_short_body_is_retried(self, tmp_path, sleeps):
        truncated = FakeResponse(BODY[:100], headers={"Content-Length": str(len(BODY))})
        client = FakeHttpClient([truncated, FakeResponse(BODY)])
        dest = tmp_path / "a"
        job = _downloader(client, sleeps).download(URL, dest)
        assert job.attempt == 2
        assert dest.read_bytes() == BODY

    def test_server_errors_are_transient(self, tmp_path, sleeps):
        client = FakeHttpClient([_http_error(500), _http_error(502)])
        with pytest.raises(DownloadFailedError) as exc_info:
            _downloader(client, sleeps, attempts=2).download(URL, tmp_path / "a")
        assert "HTTP Error 502" in str(exc_info.value)

    def test_error_response_is_closed_before_retry(self, tmp_path, sleeps):
        body = io.BytesIO(b"<html>busy</html>")
        error = urllib.error.HTTPError(URL, 503, "Service Unavailable", {}, body)
        client = FakeHttpClient([error, FakeResponse(BODY)])
        job = _downloader(client, sleeps).download(URL, tmp_path / "a")
        assert job.attempt == 2
        assert body.closed

    def test_single_attempt_policy_never_sleeps(self, tmp_path, sleeps):
        client = FakeHttpClient([ConnectionResetError("reset")])
        with pytest.raises(DownloadFailedError) as exc_info:
            _downloader(client, sleeps, attempts=1).download(URL, tmp_path / "a")
        assert exc_info.value.attempts == 1
        assert sleeps == []


class TestNotFound:
    def test_404_is_not_retried(self, tmp_path, sleeps):
        client = FakeHttpClient([_http_error(404), FakeResponse(BODY)])
        with pytest.raises(ArchiveNotFoundError) as exc_info:
            _downloader(client, sleeps).download(URL, tmp_path / "a")
        assert len(client.opened) == 1
        assert sleeps == []
        assert exc_info.value.url == URL

    def test_404_status_without_exception(self, tmp_path, sleeps):
        client = FakeHttpClient([FakeResponse(b"not found", status=404)])
        dest = tmp_path / "a"
        with pytest.raises(ArchiveNotFoundError):
            _downloader(client, sleeps).download(URL, dest)
        assert len(client.opened) == 1
        assert not dest.exists()


class TestHelpers:
    @pytest.mark.parametrize("received,total,expected", [
        (0, 1000, 0),
        (500, 1000, 50),
        (1000, 1000, 100),
        (1500, 1000, 100),
        (10, None, None),
        (10, 0, None),
    ])
    def test_progress_percent(self, received, total, expected):
        assert progress_percent(received, total) == expected

    @pytest.mark.parametrize("n,expected", [
        (512, "512.0 B"),
        (2048, "2.0 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
        (2 * 1024 ** 4, "2.0 TB"),
    ])
    def test_format_size(self, n, expected):
        assert format_size(n) == expected
