"""Offline scorer and analyzer used when no LLM provider should be called."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from autoapply.core.job_fetcher import markup_to_text
from autoapply.types import FormAnalysis, MatchResult, ProfileSnapshot

# Ordered: more specific hints first ("first_name" before "name").
FIELD_HINTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("email", ("email", "e-mail")),
    ("phone", ("phone", "tel", "mobile")),
    ("first_name", ("first_name", "firstname", "first-name", "given", "fname")),
    ("last_name", ("last_name", "lastname", "last-name", "family", "surname", "lname")),
    ("linkedin_url", ("linkedin",)),
    ("website_url", ("website", "portfolio", "homepage")),
    ("location", ("location", "city", "address")),
    ("resume_upload", ("resume", "cv")),
    ("cover_letter", ("cover",)),
    ("full_name", ("full_name", "fullname", "name")),
)


class KeywordMatchScorer:
    """Scores a job by the share of profile skills mentioned in the posting."""

    def __init__(self, threshold: int = 70):
        self.threshold = threshold

    def score_match(self, job_markup: str, profile: ProfileSnapshot) -> MatchResult:
        skills = [skill.strip() for skill in profile.skills if skill.strip()]
        if not skills:
            return MatchResult(is_match=False, match_score=0, reasoning="Profile lists no skills")

        text = markup_to_text(job_markup).lower()
        matched = [skill for skill in skills if _mentions(text, skill.lower())]
        score = round(100 * len(matched) / len(skills))
        return MatchResult(
            is_match=score >= self.threshold,
            match_score=score,
            reasoning=f"Matched {len(matched)}/{len(skills)} skills: {', '.join(matched) or 'none'}",
        )


class HeuristicFormAnalyzer:
    """Classifies form controls from their name, id, type, autocomplete and label."""

    def analyze_form(self, screenshot: bytes, markup: str) -> FormAnalysis:
        soup = BeautifulSoup(markup or "", "html.parser")
        fields: dict[str, str] = {}

        for control in soup.find_all(["input", "textarea"]):
            input_type = (control.get("type") or "text").lower()
            if input_type in {"hidden", "checkbox", "radio"}:
                continue

            selector = _selector_for(control)
            if not selector:
                continue

            if input_type == "submit":
                fields[selector] = "submit_button"
                continue

            field_type = _classify(control, soup, input_type)
            if field_type:
                fields[selector] = field_type

        for button in soup.find_all("button"):
            if (button.get("type") or "submit").lower() == "submit":
                selector = _selector_for(button)
                if selector:
                    fields.setdefault(selector, "submit_button")
                    break

        return FormAnalysis(success=bool(fields), fields=fields)


def _mentions(text: str, skill: str) -> bool:
    return re.search(rf"(?<![\w]){re.escape(skill)}(?![\w])", text) is not None


def _selector_for(control: Tag) -> str:
    if control.get("id"):
        return f"#{control['id']}"
    if control.get("name"):
        return f"{control.name}[name=\"{control['name']}\"]"
    return ""


def _classify(control: Tag, soup: BeautifulSoup, input_type: str) -> str:
    if input_type == "email":
        return "email"
    if input_type == "tel":
        return "phone"
    if input_type == "file":
        return "resume_upload"

    label_text = ""
    if control.get("id"):
        label = soup.find("label", attrs={"for": control["id"]})
        if label:
            label_text = label.get_text(" ", strip=True)

    haystack = " ".join(
        str(part)
        for part in (
            control.get("name", ""),
            control.get("id", ""),
            control.get("autocomplete", ""),
            control.get("placeholder", ""),
            control.get("aria-label", ""),
            label_text,
        )
    ).lower()
    normalized = haystack.replace(" ", "_")

    for field_type, hints in FIELD_HINTS:
        if any(hint in haystack or hint in normalized for hint in hints):
            return field_type
    return ""
