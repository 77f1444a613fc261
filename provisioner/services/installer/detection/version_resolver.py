"""
L3 Detection — Latest release lookup.

Asks the GitHub releases API for the newest kubo tag.  Any failure
falls back to a pinned last-known-good tag: a slightly stale binary
beats no binary.
"""

from __future__ import annotations

import logging

from provisioner.core.http_client import HttpClient
from provisioner.services.installer.domain.download_helpers import normalize_version

logger = logging.getLogger(__name__)


class VersionResolver:
    """Resolve the ``ReleaseVersion`` for this run."""

    def __init__(
        self,
        client: HttpClient,
        *,
        registry_url: str,
        fallback_version: str,
        timeout: float = 10.0,
    ):
        self._client = client
        self._url = registry_url
        self._fallback = normalize_version(fallback_version)
        self._timeout = timeout

    def resolve(self, pinned: str | None = None) -> str:
        """Pinned version if given, otherwise the latest published one."""
        if pinned:
            tag = normalize_version(pinned)
            logger.info("Using pinned version %s", tag)
            return tag
        return self.latest_version()

    def latest_version(self) -> str:
        try:
            data = self._client.get_json(
                self._url,
                timeout=self._timeout,
                headers={"Accept": "application/vnd.github.v3+json"},
            )
        except Exception as exc:
            logger.warning(
                "Could not fetch latest release (%s); falling back to %s",
                exc, self._fallback,
            )
            return self._fallback

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag.strip():
            logger.warning(
                "Release registry response has no tag_name; falling back to %s",
                self._fallback,
            )
            return self._fallback

        tag = normalize_version(tag)
        logger.info("Latest release: %s", tag)
        return tag
