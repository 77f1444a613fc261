"""
HTTP client — thin urllib wrapper constructed once and passed down.

Components never open URLs on their own; they receive an ``HttpClient``
so tests can substitute a fake that serves canned responses.
"""

from __future__ import annotations

import json
import logging
import urllib.request
from typing import Any, Callable

logger = logging.getLogger(__name__)


class HttpClient:
    """Blocking HTTP(S) GET with a fixed User-Agent.

    ``open`` returns the raw response (a context manager with ``status``,
    ``headers`` and ``read(n)``).  Non-2xx statuses surface as
    ``urllib.error.HTTPError`` and network problems as ``URLError`` /
    ``TimeoutError``, exactly as ``urllib`` raises them.
    """

    def __init__(
        self,
        user_agent: str,
        *,
        opener: Callable[..., Any] = urllib.request.urlopen,
    ):
        self.user_agent = user_agent
        self._opener = opener

    def open(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ):
        merged = {"User-Agent": self.user_agent}
        if headers:
            merged.update(headers)
        req = urllib.request.Request(url, headers=merged)
        logger.debug("GET %s (timeout=%ss)", url, timeout)
        return self._opener(req, timeout=timeout)

    def get_json(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET and decode a JSON body.  Raises on any failure."""
        with self.open(url, timeout=timeout, headers=headers) as resp:
            return json.loads(resp.read())
