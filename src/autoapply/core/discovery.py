from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Sequence
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

from autoapply.config import Settings
from autoapply.core.collaborators import JobDiscovery
from autoapply.core.job_fetcher import fetch_page
from autoapply.types import ProfileSnapshot

logger = logging.getLogger(__name__)


class StaticJobDiscovery:
    """Yields a fixed list of job URLs, whatever the profile."""

    def __init__(self, urls: Sequence[str]):
        self.urls = list(urls)

    def search(self, profile: ProfileSnapshot) -> Iterator[str]:
        yield from self.urls


class ListingPageDiscovery:
    """Scrapes job links out of listing pages (board search results, careers pages)."""

    def __init__(
        self,
        listing_urls: Sequence[str],
        *,
        link_pattern: str = r"/jobs?/",
        timeout_sec: int = 30,
        fetcher: Callable[[str, int], str] = fetch_page,
    ):
        self.listing_urls = list(listing_urls)
        self.link_pattern = re.compile(link_pattern)
        self.timeout_sec = timeout_sec
        self.fetcher = fetcher

    def search(self, profile: ProfileSnapshot) -> Iterator[str]:
        seen: set[str] = set()
        for listing_url in self.listing_urls:
            markup = self.fetcher(listing_url, self.timeout_sec)
            if not markup:
                continue

            for url in self._extract_links(listing_url, markup):
                if url in seen:
                    continue
                seen.add(url)
                yield url

    def _extract_links(self, base_url: str, markup: str) -> list[str]:
        soup = BeautifulSoup(markup, "html.parser")
        links = []
        for anchor in soup.find_all("a", href=True):
            absolute, _ = urldefrag(urljoin(base_url, anchor["href"].strip()))
            if not absolute.startswith(("http://", "https://")):
                continue
            if absolute.rstrip("/") == base_url.rstrip("/"):
                continue
            if self.link_pattern.search(absolute):
                links.append(absolute)
        return links


def build_discovery(settings: Settings) -> JobDiscovery:
    if settings.discovery_backend == "listing":
        return ListingPageDiscovery(
            settings.discovery_listing_url_list,
            link_pattern=settings.discovery_link_pattern,
            timeout_sec=settings.discovery_timeout_sec,
        )
    if not settings.discovery_seed_url_list:
        logger.warning("Static job discovery has no seed URLs configured; agents will find no candidates")
    return StaticJobDiscovery(settings.discovery_seed_url_list)
