"""HTTP responses as seen by the scanner, with reporting and serialisation."""

from __future__ import annotations

import http
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

import requests

from ferox.constants import OutputLevel

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost/"

_SPECIAL_SCHEMES = {"http", "https", "ws", "wss", "ftp", "file"}
_HEADER_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

_RESET = "\x1b[0m"
_COLORS = {
    "1": "\x1b[34m",
    "2": "\x1b[32m",
    "3": "\x1b[33m",
    "4": "\x1b[31m",
    "5": "\x1b[31m",
    "W": "\x1b[36m",
    "E": "\x1b[31m",
}
_WHITE = "\x1b[37m"


def _status_colorizer(status: str) -> str:
    """Colour a status (or tag such as ``WLD``) by its first character."""
    color = _COLORS.get(status[:1], _WHITE)
    return f"{color}{status}{_RESET}"


def _create_report_string(
    status: str, lines: str, words: str, chars: str, url: str, output_level: OutputLevel
) -> str:
    """The standard one-line report for a response."""
    if output_level is OutputLevel.SILENT:
        return f"{url}\n"
    return (
        f"{_status_colorizer(status)} {lines:>8}l {words:>8}w {chars:>8}c {url}\n"
    )


def _normalize_url(url: str) -> str:
    """Validate ``url`` and return it in canonical form; raise ``ValueError`` if invalid."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"{url!r} is not an absolute URL")
    scheme = parts.scheme.lower()
    path = parts.path
    if scheme in _SPECIAL_SCHEMES and not path:
        path = "/"
    return urlunsplit((scheme, parts.netloc, path, parts.query, parts.fragment))


def _path_segments(url: str) -> list[str]:
    return urlsplit(url).path.lstrip("/").split("/")


def path_length_of_url(url: str) -> int:
    """Length of the last non-empty segment of the url's path (trailing slash ignored)."""
    path = urlsplit(url).path
    if path.startswith("/"):
        path = path[1:]
    segments = path.split("/")
    if segments and segments[-1] == "":
        segments.pop()
    return len(segments[-1]) if segments else 0


def url_depth(url: str) -> int:
    """Number of directories in ``url`` once it is given a trailing slash."""
    target = url if url.endswith("/") else f"{url}/"
    try:
        normalized = _normalize_url(target)
    except ValueError:
        return 0
    return len(_path_segments(normalized))


def _count_lines(text: str) -> int:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return len(lines)


def _status_reason(status: int) -> str:
    try:
        return http.HTTPStatus(status).phrase
    except ValueError:
        return "<unknown status code>"


def _is_u64(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _valid_header_value(value: str) -> bool:
    return all(ch == "\t" or (0x20 <= ord(ch) and ord(ch) != 0x7F) for ch in value)


@dataclass
class FeroxResponse:
    """A response to one request, reduced to what the scanner reports on."""

    url: str = DEFAULT_URL
    status: int = 200
    text: str = ""
    content_length: int = 0
    line_count: int = 0
    word_count: int = 0
    headers: dict[str, str] = field(default_factory=dict)
    wildcard: bool = False
    output_level: OutputLevel = OutputLevel.DEFAULT

    def __str__(self) -> str:
        return (
            f"FeroxResponse {{ url: {self.url}, status: {self.status} "
            f"{_status_reason(self.status)}, content-length: {self.content_length} }}"
        )

    @classmethod
    def from_http(
        cls,
        response: requests.Response,
        read_body: bool = True,
        output_level: OutputLevel = OutputLevel.DEFAULT,
    ) -> "FeroxResponse":
        """Build a response from a ``requests.Response``."""
        headers = {name.lower(): value for name, value in response.headers.items()}

        text = ""
        if read_body:
            try:
                text = response.text
            except (requests.RequestException, UnicodeDecodeError) as exc:
                logger.warning("Could not parse body from response: %s", exc)

        raw_length = headers.get("content-length", "")
        if raw_length.strip().isdigit():
            content_length = int(raw_length)
        elif read_body:
            content_length = len(response.content or b"")
        else:
            content_length = 0

        try:
            url = _normalize_url(response.url)
        except (ValueError, TypeError):
            url = DEFAULT_URL

        return cls(
            url=url,
            status=response.status_code,
            text=text,
            content_length=content_length,
            line_count=_count_lines(text),
            word_count=len(text.split()),
            headers=headers,
            wildcard=False,
            output_level=output_level,
        )

    @classmethod
    def from_json(cls, text: str) -> "FeroxResponse":
        """Build a response from its NDJSON form; unusable fields keep their defaults."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("a response must be a JSON object")

        response = cls()

        url = data.get("url")
        if isinstance(url, str):
            try:
                response.url = _normalize_url(url)
            except ValueError:
                pass

        status = data.get("status")
        if _is_u64(status) and 100 <= status <= 999:
            response.status = status

        for name in ("content_length", "line_count", "word_count"):
            value = data.get(name)
            if _is_u64(value):
                setattr(response, name, value)

        if "headers" in data:
            headers: dict[str, str] = {}
            raw_headers = data["headers"]
            if isinstance(raw_headers, dict):
                for key, value in raw_headers.items():
                    value_str = value if isinstance(value, str) else ""
                    name = key.lower() if _HEADER_NAME.match(key) else "unknown"
                    if not _valid_header_value(value_str):
                        value_str = "Unknown"
                    headers[name] = value_str
            response.headers = headers

        wildcard = data.get("wildcard")
        if isinstance(wildcard, bool):
            response.wildcard = wildcard

        return response

    def set_url(self, url: str) -> None:
        """Replace the url; an unparsable url is logged and ignored."""
        try:
            self.url = _normalize_url(url)
        except ValueError as exc:
            logger.warning("Could not parse %s into a Url: %s", url, exc)

    def set_text(self, text: str) -> None:
        """Replace the body and recompute its length, lines and words."""
        self.text = text
        self.content_length = len(text.encode("utf-8"))
        self.line_count = _count_lines(text)
        self.word_count = len(text.split())

    def drop_text(self) -> None:
        """Free the body text."""
        self.text = ""

    def is_file(self) -> bool:
        """Guess whether the url points to a file: an extension or a query string."""
        parts = urlsplit(self.url)
        last = parts.path.rsplit("/", 1)[-1] if parts.path.startswith("/") else ""
        has_query = any(piece for piece in parts.query.split("&"))
        return has_query or "." in last

    def is_directory(self) -> bool:
        """Whether the response looks like a directory suitable for recursion."""
        if 300 <= self.status < 400:
            location = self.headers.get("location")
            if location is None:
                logger.debug("expected Location header, but none was found: %s", self)
                return False
            try:
                absolute = _normalize_url(urljoin(self.url, location))
            except ValueError:
                return False
            if f"{self.url}/" == absolute:
                logger.debug("found directory suitable for recursion: %s", self.url)
                return True
        elif 200 <= self.status < 300 or self.status == 403:
            if self.url.endswith("/"):
                logger.debug("%s is directory suitable for recursion", self.url)
                return True
        return False

    def reached_max_depth(self, base_depth: int, max_depth: int) -> bool:
        """Whether the url is ``max_depth`` or more directories below ``base_depth``."""
        if max_depth == 0:
            return False
        return url_depth(self.url) - base_depth >= max_depth

    def to_dict(self) -> dict[str, Any]:
        """Serialisable form of the response."""
        return {
            "type": "response",
            "url": self.url,
            "path": urlsplit(self.url).path,
            "wildcard": self.wildcard,
            "status": self.status,
            "content_length": self.content_length,
            "line_count": self.line_count,
            "word_count": self.word_count,
            "headers": dict(self.headers),
        }

    def as_str(self) -> str:
        """Report line(s) for the terminal, ending in a newline."""
        lines = str(self.line_count)
        words = str(self.word_count)
        chars = str(self.content_length)
        status = str(self.status)

        if self.wildcard and self.output_level.is_loud:
            wild_status = _status_colorizer("WLD")
            message = (
                f"{wild_status} {lines:>8}l {words:>8}w {chars:>8}c Got "
                f"{_status_colorizer(status)} for {self.url} "
                f"(url length: {path_length_of_url(self.url)})\n"
            )
            if 300 <= self.status < 400:
                location = self.headers.get("location")
                if location is not None:
                    message += (
                        f"{wild_status} {'-':>9} {'-':>9} {'-':>9} {self.url} "
                        f"redirects to => {location}\n"
                    )
            return message

        return _create_report_string(
            status, lines, words, chars, self.url, self.output_level
        )

    def as_json(self) -> str:
        """NDJSON form of the response, ending in a newline."""
        try:
            return json.dumps(self.to_dict(), separators=(",", ":")) + "\n"
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Could not convert {self.url} to JSON") from exc