"""Shared settings, filters and results for a running scan."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlencode, urlsplit

import requests

from ferox.constants import DEFAULT_STATUS_CODES, VERSION, OutputLevel
from ferox.filters import FeroxFilters
from ferox.response import FeroxResponse

logger = logging.getLogger(__name__)

#: Seconds to wait for a response before giving up.
DEFAULT_TIMEOUT = 7

#: User-Agent sent with every request unless overridden.
DEFAULT_USER_AGENT = f"ferox/{VERSION}"

#: How many directories deep recursion may go by default.
DEFAULT_DEPTH = 4


def _require_absolute(url: str) -> None:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"{url!r} is not an absolute URL")


@dataclass
class ScanContext:
    """Everything a scan component needs: settings, filters, seen urls and results."""

    status_codes: tuple[int, ...] = DEFAULT_STATUS_CODES
    output_level: OutputLevel = OutputLevel.DEFAULT
    no_recursion: bool = False
    extensions: list[str] = field(default_factory=list)
    url_denylist: list[str] = field(default_factory=list)
    proxy: str = ""
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    insecure: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    follow_redirects: bool = False
    add_slash: bool = False
    queries: list[tuple[str, str]] = field(default_factory=list)
    dont_filter: bool = False
    base_depth: int = 0
    max_depth: int = DEFAULT_DEPTH
    filters: FeroxFilters = field(default_factory=FeroxFilters)
    scanned_urls: set[str] = field(default_factory=set)
    reported: list[FeroxResponse] = field(default_factory=list)
    recursion_queue: list[FeroxResponse] = field(default_factory=list)
    links_extracted: int = 0
    total_expected: int = 0
    errors: int = 0
    session: requests.Session = field(
        default_factory=requests.Session, repr=False, compare=False
    )

    def _request_options(self) -> dict[str, Any]:
        headers = {"User-Agent": self.user_agent, **self.headers}
        proxies: Optional[dict[str, str]] = None
        if self.proxy:
            proxies = {"http": self.proxy, "https": self.proxy}
        return {
            "headers": headers,
            "timeout": self.timeout,
            "verify": not self.insecure,
            "proxies": proxies,
        }

    def fetch(self, url: str) -> requests.Response:
        """Request ``url`` with the scan's settings; failures are counted and re-raised."""
        try:
            response = self.session.get(
                url, allow_redirects=self.follow_redirects, **self._request_options()
            )
        except requests.RequestException as exc:
            self.errors += 1
            logger.warning("Error while requesting %s: %s", url, exc)
            raise
        logger.debug("requested %s -> %s", url, response.status_code)
        return response

    def format_url(self, url: str, word: str) -> str:
        """Build the url to request for ``word`` below ``url``, honouring slash and query options."""
        _require_absolute(url)
        if word:
            base = url if url.endswith("/") else f"{url}/"
            formatted = f"{base}{word}"
        else:
            formatted = url
        if self.add_slash and not formatted.endswith("/"):
            formatted = f"{formatted}/"
        if self.queries:
            separator = "&" if urlsplit(formatted).query else "?"
            formatted = f"{formatted}{separator}{urlencode(self.queries)}"
        return formatted

    def should_deny(self, url: str) -> bool:
        """True when ``url`` falls under one of the denylisted urls."""
        target = urlsplit(url)
        for entry in self.url_denylist:
            denied = urlsplit(entry)
            if denied.hostname != target.hostname:
                continue
            denied_path = denied.path.rstrip("/")
            if (
                not denied_path
                or target.path == denied_path
                or target.path.startswith(f"{denied_path}/")
            ):
                return True
        return False

    def report(self, response: FeroxResponse) -> None:
        """Record ``response`` as a result to show the user."""
        logger.debug("reporting %s", response)
        self.reported.append(response)

    def try_recursion(self, response: FeroxResponse) -> bool:
        """Queue ``response`` for a recursive scan if it is a new directory within depth."""
        if self.no_recursion:
            return False
        if not response.is_directory():
            return False
        if response.reached_max_depth(self.base_depth, self.max_depth):
            logger.debug("max depth reached for %s", response.url)
            return False
        if response.url in self.scanned_urls:
            return False
        self.scanned_urls.add(response.url)
        self.recursion_queue.append(response)
        return True