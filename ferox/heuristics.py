"""Checks run before a scan: wildcard detection and target connectivity."""

from __future__ import annotations

import logging
import uuid
from typing import Iterable

import requests
from tqdm import tqdm

from ferox.context import ScanContext
from ferox.filters import WildcardFilter
from ferox.response import FeroxResponse, path_length_of_url

logger = logging.getLogger(__name__)

#: Length of a uuid rendered as lowercase hex without hyphens.
UUID_LENGTH = 32

_RESET = "\x1b[0m"
_CYAN = "\x1b[36m"
_YELLOW = "\x1b[33m"


def _cyan(text: object) -> str:
    return f"{_CYAN}{text}{_RESET}"


def _yellow(text: object) -> str:
    return f"{_YELLOW}{text}{_RESET}"


def _wildcard_notice(description: str) -> str:
    """Terminal line announcing that wildcard responses will be filtered."""
    return (
        f"{_cyan('WLD')} {'-':>9} {'-':>9} {'-':>9} {description}; "
        f"toggle this behavior by using {_yellow('--dont-filter')}\n"
    )


class HeuristicTests:
    """Pre-scan tests that tune filtering and weed out unreachable targets."""

    def __init__(self, context: ScanContext) -> None:
        self.context = context

    def unique_string(self, length: int) -> str:
        """``length`` random uuids joined together, 32 hex characters each."""
        return "".join(uuid.uuid4().hex for _ in range(length))

    def _loud(self) -> bool:
        return self.context.output_level.is_loud

    def wildcard(self, target_url: str) -> int:
        """Detect wildcard responses at ``target_url`` and add a matching filter.

        Returns the number of requests made, for progress accounting.
        """
        if self.context.dont_filter:
            return 0

        first = self.make_wildcard_request(target_url, 1)
        wildcard = WildcardFilter(dont_filter=self.context.dont_filter)
        wc_length = first.content_length

        if wc_length == 0:
            self.context.filters.push(wildcard)
            return 1

        second = self.make_wildcard_request(target_url, 3)
        wc2_length = second.content_length

        if wc2_length == wc_length + UUID_LENGTH * 2:
            # the requested path is reflected in the body next to static content
            wildcard.dynamic = wc_length - path_length_of_url(target_url)
            if self._loud():
                tqdm.write(
                    _wildcard_notice(
                        f"Wildcard response is dynamic; {_yellow('auto-filtering')} "
                        f"({_cyan(wildcard.dynamic)} + url length) responses"
                    ),
                    end="",
                )
        elif wc_length == wc2_length:
            wildcard.size = wc_length
            if self._loud():
                tqdm.write(
                    _wildcard_notice(
                        f"Wildcard response is static; {_yellow('auto-filtering')} "
                        f"{_cyan(wildcard.size)} responses"
                    ),
                    end="",
                )

        self.context.filters.push(wildcard)
        return 2

    def make_wildcard_request(self, target_url: str, length: int) -> FeroxResponse:
        """Request a random path below ``target_url``; return it if it looks like a wildcard.

        Raises ``ValueError`` when the status code is uninteresting or the
        response is hidden by an existing filter.
        """
        unique = self.unique_string(length)
        nonexistent = self.context.format_url(target_url, unique)
        raw = self.context.fetch(nonexistent)

        if raw.status_code not in self.context.status_codes:
            raise ValueError("uninteresting status code")

        response = FeroxResponse.from_http(raw, True, self.context.output_level)
        response.wildcard = True

        if self.context.filters.should_filter_response(response):
            raise ValueError("filtered response")

        if self._loud():
            self.context.report(response)

        return response

    def connectivity(self, target_urls: Iterable[str]) -> list[str]:
        """Return the targets that answer at all; ``ConnectionError`` if none do."""
        good_urls: list[str] = []

        for target_url in target_urls:
            try:
                request_url = self.context.format_url(target_url, "")
            except ValueError as exc:
                logger.warning("%s; skipping...", exc)
                continue

            try:
                self.context.fetch(request_url)
            except requests.RequestException as exc:
                if self._loud():
                    if isinstance(exc, requests.exceptions.SSLError) or ":SSL" in str(exc):
                        tqdm.write(
                            f"Could not connect to {target_url} due to SSL errors "
                            "(run with -k to ignore), skipping..."
                        )
                    else:
                        tqdm.write(f"Could not connect to {target_url}, skipping...")
                logger.warning("%s", exc)
                continue

            good_urls.append(target_url)

        if not good_urls:
            raise ConnectionError("Could not connect to any target provided")

        return good_urls