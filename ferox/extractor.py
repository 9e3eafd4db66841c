"""Extract links from response bodies and robots.txt and request them."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

import requests

from ferox.context import ScanContext
from ferox.response import FeroxResponse

logger = logging.getLogger(__name__)

#: Link-finding expression for javascript and html sources.
LINKFINDER_REGEX = r"""(?:"|')(((?:[a-zA-Z]{1,10}://|//)[^"'/]{1,}\.[a-zA-Z]{2,}[^"']{0,})|((?:/|\.\./|\./)[^"'><,;| *()(%%$^/\\\[\]][^"'><,;|()]{1,})|([a-zA-Z0-9_\-/]{1,}/[a-zA-Z0-9_\-/]{1,}\.(?:[a-zA-Z]{1,4}|action)(?:[\?|#][^"|']{0,}|))|([a-zA-Z0-9_\-/]{1,}/[a-zA-Z0-9_\-/]{3,}(?:[\?|#][^"|']{0,}|))|([a-zA-Z0-9_\-.]{1,}\.(?:php|asp|aspx|jsp|json|action|html|js|txt|xml)(?:[\?|#][^"|']{0,}|)))(?:"|')"""

#: Expression that pulls url paths from robots.txt.
ROBOTS_TXT_REGEX = r"(?m)^ *(Allow|Disallow): *(?P<url_path>[a-zA-Z0-9._/?#@!&'()+,;%=-]+?)$"

_LINKS = re.compile(LINKFINDER_REGEX)
_ROBOTS = re.compile(ROBOTS_TXT_REGEX)
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_SPECIAL_SCHEMES = {"http", "https", "ws", "wss", "ftp", "file"}


class ExtractionTarget(enum.Enum):
    """What to extract links from."""

    RESPONSE_BODY = "response_body"
    ROBOTS_TXT = "robots_txt"


def _parse_absolute(url: str) -> str:
    parts = urlsplit(url)
    if not _SCHEME.match(url) or not parts.netloc:
        raise ValueError(f"{url!r} is not an absolute URL")
    parts.port  # raises ValueError on a bad port
    return url


def _join(base: str, link: str) -> str:
    """Resolve ``link`` against ``base``; ``ValueError`` if the result is not a usable url."""
    base_parts = urlsplit(base)
    reference = link.strip()
    if base_parts.scheme.lower() in _SPECIAL_SCHEMES:
        reference = reference.replace("\\", "/")
    if not _SCHEME.match(reference) and reference.startswith("//"):
        if not urlsplit(f"{base_parts.scheme}:{reference}").netloc:
            raise ValueError(f"empty host in {link!r}")
    joined = urljoin(base, reference)
    parts = urlsplit(joined)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"could not resolve {link!r} against {base!r}")
    if parts.scheme.lower() in _SPECIAL_SCHEMES and not parts.path:
        joined = urlunsplit((parts.scheme, parts.netloc, "/", parts.query, parts.fragment))
    return joined


def _robots_path(path: str) -> str:
    full = path if path.startswith("/") else f"/{path}"
    return full.replace("?", "%3F").replace("#", "%23")


@dataclass
class Extractor:
    """Finds links in a response body or a site's robots.txt."""

    context: ScanContext
    target: ExtractionTarget = ExtractionTarget.RESPONSE_BODY
    response: Optional[FeroxResponse] = None
    url: str = ""
    links_regex: re.Pattern = field(default=_LINKS, repr=False)
    robots_regex: re.Pattern = field(default=_ROBOTS, repr=False)

    def extract(self) -> set[str]:
        """Run the extraction this extractor was built for."""
        if self.target is ExtractionTarget.ROBOTS_TXT:
            return self.extract_from_robots()
        return self.extract_from_body()

    def request_links(self, links: set[str]) -> None:
        """Request every link; report files and try recursion into directories."""
        recursive = not self.context.no_recursion
        for link in links:
            try:
                resp = self.request_link(link)
            except (ValueError, requests.RequestException) as exc:
                logger.debug("skipping %s: %s", link, exc)
                continue

            if self.context.filters.should_filter_response(resp):
                continue

            if resp.is_file():
                logger.debug("Extracted file: %s", resp)
                self.context.scanned_urls.add(resp.url)
                self.context.report(resp)
                continue

            if recursive:
                logger.debug("Extracted Directory: %s", resp)
                if not resp.url.endswith("/") and (
                    200 <= resp.status < 300 or resp.status == 403
                ):
                    resp.set_url(f"{resp.url}/")
                self.context.try_recursion(resp)

    def _response(self) -> FeroxResponse:
        if self.response is None:
            raise ValueError("no response to extract links from")
        return self.response

    def extract_from_body(self) -> set[str]:
        """Collect links found in the response body, limited to the response's host."""
        response = self._response()
        links: set[str] = set()
        own_host = urlsplit(response.url).hostname

        for match in self.links_regex.finditer(response.text):
            link = match.group(0).strip("'\"")
            if _SCHEME.match(link):
                try:
                    absolute = _parse_absolute(link) if "//" in link else None
                except ValueError as exc:
                    logger.warning("Could not parse given url: %s", exc)
                    self.context.errors += 1
                    continue
                parts = urlsplit(link)
                if absolute is None and parts.scheme.lower() in _SPECIAL_SCHEMES:
                    logger.warning("Could not parse given url: %s", link)
                    self.context.errors += 1
                    continue
                if parts.hostname != own_host:
                    continue
                path = parts.path
            elif link.startswith("//"):
                # scheme-relative urls do not parse without a base; they are kept as fragments
                path = link
            else:
                path = link
            try:
                self._add_all_sub_paths(path, links)
            except ValueError:
                logger.warning("could not add sub-paths from %s to %s", link, links)

        self._update_stats(len(links))
        return links

    def _add_all_sub_paths(self, url_path: str, links: set[str]) -> None:
        for sub_path in self.get_sub_paths_from_path(url_path):
            self.add_link_to_set_of_links(sub_path, links)

    def get_sub_paths_from_path(self, path: str) -> list[str]:
        """Every sub-path of ``path``: the full path, then each parent directory with a slash."""
        parts = [part for part in path.split("/") if part]
        paths = []
        for end in range(len(parts), 0, -1):
            candidate = "/".join(parts[:end])
            paths.append(candidate if end == len(parts) else f"{candidate}/")
        return paths

    def _base_url(self) -> str:
        if self.target is ExtractionTarget.RESPONSE_BODY:
            return self._response().url
        try:
            return _parse_absolute(self.url)
        except ValueError as exc:
            raise ValueError(f"Could not parse {self.url}: {exc}") from exc

    def add_link_to_set_of_links(self, link: str, links: set[str]) -> None:
        """Join ``link`` with the base url and add the result to ``links``."""
        base = self._base_url()
        try:
            new_url = _join(base, link)
        except ValueError as exc:
            raise ValueError(f"Could not join {base} with {link}") from exc
        links.add(new_url)

    def request_link(self, url: str) -> FeroxResponse:
        """Request ``url`` unless it was seen before or is denied."""
        new_url = self.context.format_url(url, "")
        if new_url in self.context.scanned_urls:
            raise ValueError("previously seen url")
        if self.context.url_denylist and self.context.should_deny(new_url):
            raise ValueError(
                f"prevented request to {url} due to {self.context.url_denylist}"
            )
        raw = self.context.fetch(new_url)
        return FeroxResponse.from_http(raw, True, self.context.output_level)

    def extract_from_robots(self) -> set[str]:
        """Collect the paths named in the site's robots.txt."""
        links: set[str] = set()
        _parse_absolute(self.url)
        response = self.request_robots_txt()
        for match in self.robots_regex.finditer(response.text):
            new_path = _robots_path(match.group("url_path"))
            try:
                self._add_all_sub_paths(new_path, links)
            except ValueError:
                logger.warning("could not add sub-paths from %s to %s", new_path, links)
        self._update_stats(len(links))
        return links

    def request_robots_txt(self) -> FeroxResponse:
        """Request ``/robots.txt`` at the root of the url, following redirects."""
        parts = urlsplit(_parse_absolute(self.url))
        robots_url = urlunsplit(
            (parts.scheme, parts.netloc, "/robots.txt", parts.query, parts.fragment)
        )
        ctx = self.context
        proxies = {"http": ctx.proxy, "https": ctx.proxy} if ctx.proxy else None
        with requests.Session() as session:
            try:
                raw = session.get(
                    robots_url,
                    headers={"User-Agent": ctx.user_agent, **ctx.headers},
                    timeout=ctx.timeout,
                    verify=not ctx.insecure,
                    proxies=proxies,
                    allow_redirects=True,
                )
            except requests.RequestException:
                ctx.errors += 1
                raise
            return FeroxResponse.from_http(raw, True, ctx.output_level)

    def _update_stats(self, num_links: int) -> None:
        multiplier = max(len(self.context.extensions), 1)
        self.context.links_extracted += num_links
        self.context.total_expected += num_links * multiplier


class ExtractorBuilder:
    """Step-by-step construction of an ``Extractor``."""

    def __init__(self) -> None:
        self._response: Optional[FeroxResponse] = None
        self._url = ""
        self._context: Optional[ScanContext] = None
        self._target = ExtractionTarget.RESPONSE_BODY

    def url(self, url: str) -> "ExtractorBuilder":
        """Set the url to extract from."""
        self._url = url
        return self

    def target(self, target: ExtractionTarget) -> "ExtractorBuilder":
        """Set the kind of extraction."""
        self._target = target
        return self

    def response(self, response: FeroxResponse) -> "ExtractorBuilder":
        """Set the response to extract from."""
        self._response = response
        return self

    def context(self, context: ScanContext) -> "ExtractorBuilder":
        """Set the scan context."""
        self._context = context
        return self

    def build(self) -> Extractor:
        """Create the extractor; a url or response and a context are required."""
        if (not self._url and self._response is None) or self._context is None:
            raise ValueError(
                "Extractor requires a URL or a FeroxResponse be specified "
                "as well as a ScanContext object"
            )
        return Extractor(
            context=self._context,
            target=self._target,
            response=self._response,
            url=self._url,
        )