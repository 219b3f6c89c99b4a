from __future__ import annotations

from autoapply.config import Settings
from autoapply.core.discovery import ListingPageDiscovery, StaticJobDiscovery, build_discovery
from autoapply.types import ProfileSnapshot

PROFILE = ProfileSnapshot(user_id="user-1")

LISTING = """
<a href="/jobs/1">Engineer</a>
<a href="/jobs/2#apply">Analyst</a>
<a href="https://other.example.com/job/9">Remote role</a>
<a href="/about">About us</a>
<a href="mailto:jobs@example.com">Email</a>
<a href="/jobs/1">Engineer again</a>
"""


def test_static_discovery_yields_configured_urls_in_order() -> None:
    discovery = StaticJobDiscovery(["https://a.example/jobs/1", "https://b.example/jobs/2"])

    assert list(discovery.search(PROFILE)) == ["https://a.example/jobs/1", "https://b.example/jobs/2"]


def test_listing_discovery_extracts_deduplicated_job_links() -> None:
    fetched: list[str] = []

    def fetcher(url: str, timeout_sec: int) -> str:
        fetched.append(url)
        return LISTING

    discovery = ListingPageDiscovery(["https://careers.example.com/jobs/"], fetcher=fetcher)

    assert list(discovery.search(PROFILE)) == [
        "https://careers.example.com/jobs/1",
        "https://careers.example.com/jobs/2",
        "https://other.example.com/job/9",
    ]
    assert fetched == ["https://careers.example.com/jobs/"]


def test_listing_discovery_is_lazy() -> None:
    fetched: list[str] = []

    def fetcher(url: str, timeout_sec: int) -> str:
        fetched.append(url)
        return LISTING

    discovery = ListingPageDiscovery(
        ["https://one.example.com/search", "https://two.example.com/search"],
        fetcher=fetcher,
    )
    first = next(iter(discovery.search(PROFILE)))

    assert first == "https://one.example.com/jobs/1"
    assert fetched == ["https://one.example.com/search"]


def test_listing_discovery_skips_unreachable_pages() -> None:
    discovery = ListingPageDiscovery(["https://down.example.com/jobs"], fetcher=lambda url, timeout: "")

    assert list(discovery.search(PROFILE)) == []


def test_build_discovery_uses_configured_backend() -> None:
    static = build_discovery(Settings(discovery_seed_urls="https://a.example/jobs/1, https://b.example/jobs/2"))
    listing = build_discovery(Settings(discovery_backend="listing", discovery_listing_urls="https://x.example/jobs"))

    assert isinstance(static, StaticJobDiscovery)
    assert static.urls == ["https://a.example/jobs/1", "https://b.example/jobs/2"]
    assert isinstance(listing, ListingPageDiscovery)
    assert listing.listing_urls == ["https://x.example/jobs"]
