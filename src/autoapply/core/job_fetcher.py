from __future__ import annotations

import json
import logging

import requests
from bs4 import BeautifulSoup

from autoapply.types import JobDetails

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

FORM_TAGS = ["input", "textarea", "select", "button", "label"]


def fetch_page(url: str, timeout_sec: int = 30) -> str:
    try:
        response = requests.get(url, timeout=timeout_sec, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
    except Exception as exc:
        logger.warning("Failed to fetch URL %s: %s", url, exc)
        return ""
    return response.text


def markup_to_text(markup: str) -> str:
    soup = BeautifulSoup(markup or "", "html.parser")
    for tag in soup(["script", "style", "noscript", "svg"]):
        tag.extract()

    text = soup.get_text("\n")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines)


def extract_job_details(markup: str, *, description_chars: int = 5000) -> JobDetails:
    soup = BeautifulSoup(markup or "", "html.parser")
    details = _details_from_json_ld(soup)

    if not details.title:
        og_title = soup.find("meta", attrs={"property": "og:title"})
        heading = soup.find("h1")
        if og_title and og_title.get("content"):
            details.title = og_title["content"].strip()
        elif heading and heading.get_text(strip=True):
            details.title = heading.get_text(strip=True)
        elif soup.title and soup.title.string:
            details.title = soup.title.string.strip()

    if not details.company:
        site_name = soup.find("meta", attrs={"property": "og:site_name"})
        if site_name and site_name.get("content"):
            details.company = site_name["content"].strip()

    details.title = details.title[:255]
    details.company = details.company[:255]
    details.location = details.location[:255]
    details.description = markup_to_text(markup)[:description_chars]
    return details


def extract_form_markup(markup: str, limit: int) -> str:
    """Reduce a page to its form controls so the analyzer sees inputs, not page chrome."""
    soup = BeautifulSoup(markup or "", "html.parser")
    forms = soup.find_all("form")
    if forms:
        fragment = "\n".join(str(form) for form in forms)
    else:
        controls = soup.find_all(FORM_TAGS)
        fragment = "\n".join(str(control) for control in controls) if controls else (markup or "")
    return fragment[:limit]


def _details_from_json_ld(soup: BeautifulSoup) -> JobDetails:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict) or item.get("@type") != "JobPosting":
                continue

            organization = item.get("hiringOrganization") or {}
            location = item.get("jobLocation") or {}
            if isinstance(location, list):
                location = location[0] if location else {}
            address = location.get("address", {}) if isinstance(location, dict) else {}
            if isinstance(address, dict):
                locality = ", ".join(
                    part for part in (address.get("addressLocality"), address.get("addressRegion")) if part
                )
            else:
                locality = str(address)

            return JobDetails(
                title=str(item.get("title", "")).strip(),
                company=str(organization.get("name", "") if isinstance(organization, dict) else organization).strip(),
                location=locality,
            )
    return JobDetails()
