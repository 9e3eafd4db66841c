"""Filters that decide which responses are hidden from the user."""

from __future__ import annotations

import abc
import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from urllib.parse import urlsplit

import requests

from ferox.constants import SIMILARITY_THRESHOLD, OutputLevel
from ferox.fuzzyhash import compare, fuzzy_hash
from ferox.response import FeroxResponse, path_length_of_url

logger = logging.getLogger(__name__)

#: Marker meaning "no value learned yet" for wildcard sizes.
U64_MAX = 2**64 - 1

#: Seconds to wait when fetching pages for similarity filters.
DEFAULT_TIMEOUT = 7


class FeroxFilter(abc.ABC):
    """A rule that may hide a response."""

    @abc.abstractmethod
    def should_filter_response(self, response: FeroxResponse) -> bool:
        """True when ``response`` should not be reported."""


@dataclass
class WildcardFilter(FeroxFilter):
    """Hides wildcard responses by static size or by size relative to the url's path."""

    dynamic: int = U64_MAX
    size: int = U64_MAX
    dont_filter: bool = False

    def should_filter_response(self, response: FeroxResponse) -> bool:
        if self.dont_filter:
            return False

        if self.size != U64_MAX and self.size == response.content_length:
            logger.debug("static wildcard: filtered out %s", response.url)
            return True

        if self.dynamic != U64_MAX:
            url_len = path_length_of_url(response.url)
            if url_len + self.dynamic == response.content_length:
                logger.debug("dynamic wildcard: filtered out %s", response.url)
                return True

        return False


@dataclass
class StatusCodeFilter(FeroxFilter):
    """Hides responses with a given status code."""

    filter_code: int = 0

    def should_filter_response(self, response: FeroxResponse) -> bool:
        if response.status == self.filter_code:
            logger.debug(
                "filtered out %s based on --filter-status of %s",
                response.url,
                self.filter_code,
            )
            return True
        return False


@dataclass
class LinesFilter(FeroxFilter):
    """Hides responses whose body has a given number of lines."""

    line_count: int = 0

    def should_filter_response(self, response: FeroxResponse) -> bool:
        return response.line_count == self.line_count


@dataclass
class WordsFilter(FeroxFilter):
    """Hides responses whose body has a given number of words."""

    word_count: int = 0

    def should_filter_response(self, response: FeroxResponse) -> bool:
        return response.word_count == self.word_count


@dataclass
class SizeFilter(FeroxFilter):
    """Hides responses with a given content length."""

    content_length: int = 0

    def should_filter_response(self, response: FeroxResponse) -> bool:
        return response.content_length == self.content_length


@dataclass
class RegexFilter(FeroxFilter):
    """Hides responses whose body matches a regular expression."""

    raw_string: str
    compiled: Optional[re.Pattern] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.compiled is None:
            self.compiled = re.compile(self.raw_string)

    def should_filter_response(self, response: FeroxResponse) -> bool:
        return self.compiled.search(response.text) is not None


@dataclass
class SimilarityFilter(FeroxFilter):
    """Hides responses whose body is a near-duplicate of a known page."""

    text: str = ""
    threshold: int = SIMILARITY_THRESHOLD

    def should_filter_response(self, response: FeroxResponse) -> bool:
        try:
            return compare(self.text, fuzzy_hash(response.text)) >= self.threshold
        except ValueError:
            logger.warning("Could not hash body from %s", response.as_str())
            return False


class FeroxFilters:
    """A thread-safe collection of filters without duplicates."""

    def __init__(self) -> None:
        self.filters: list[FeroxFilter] = []
        self.wildcards_filtered = 0
        self._lock = threading.Lock()

    def push(self, filter: FeroxFilter) -> None:
        """Add ``filter`` unless an equal one is already present."""
        with self._lock:
            if filter not in self.filters:
                self.filters.append(filter)

    def should_filter_response(self, response: FeroxResponse) -> bool:
        """True if any filter hides ``response``; counts wildcard hits."""
        with self._lock:
            for candidate in self.filters:
                if candidate.should_filter_response(response):
                    if isinstance(candidate, WildcardFilter):
                        self.wildcards_filtered += 1
                    return True
        return False


def _default_fetch(url: str) -> requests.Response:
    return requests.get(url, timeout=DEFAULT_TIMEOUT)


def initialize(
    filters: FeroxFilters,
    filter_status: Iterable[int] = (),
    filter_line_count: Iterable[int] = (),
    filter_word_count: Iterable[int] = (),
    filter_size: Iterable[int] = (),
    filter_regex: Iterable[str] = (),
    filter_similar: Iterable[str] = (),
    fetch: Optional[Callable[[str], requests.Response]] = None,
    output_level: OutputLevel = OutputLevel.DEFAULT,
) -> FeroxFilters:
    """Add every user-supplied filter to ``filters``; bad entries are logged and skipped."""
    for code in filter_status:
        filters.push(StatusCodeFilter(filter_code=code))
    for lines in filter_line_count:
        filters.push(LinesFilter(line_count=lines))
    for words in filter_word_count:
        filters.push(WordsFilter(word_count=words))
    for size in filter_size:
        filters.push(SizeFilter(content_length=size))

    for raw in filter_regex:
        try:
            filters.push(RegexFilter(raw_string=raw))
        except re.error as exc:
            logger.warning("%s; skipping...", exc)

    fetcher = fetch or _default_fetch
    for url in filter_similar:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            logger.warning("could not parse %s as a url; skipping...", url)
            continue
        try:
            raw_response = fetcher(url)
        except (requests.RequestException, OSError, ValueError) as exc:
            logger.warning("%s; skipping...", exc)
            continue
        page = FeroxResponse.from_http(raw_response, True, output_level)
        filters.push(
            SimilarityFilter(text=fuzzy_hash(page.text), threshold=SIMILARITY_THRESHOLD)
        )

    return filters