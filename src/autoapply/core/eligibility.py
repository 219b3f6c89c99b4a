"""Profile completeness and monthly application quota."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from autoapply.types import EligibilityResult

FREE_TRIAL_APPLICATION_LIMIT = 2
REQUIRED_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "location",
    "summary",
    "experience_years",
)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _profile_skills(profile: Any) -> list[str]:
    skills = getattr(profile, "skills", None)
    if skills is None:
        skills = getattr(profile, "skills_json", None)
    return [skill for skill in (skills or []) if isinstance(skill, str) and skill.strip()]


def is_profile_complete(profile: Any | None) -> bool:
    if profile is None:
        return False
    if any(_is_blank(getattr(profile, field, None)) for field in REQUIRED_PROFILE_FIELDS):
        return False
    return bool(_profile_skills(profile))


def application_limit(subscription: Any | None, *, free_trial_limit: int = FREE_TRIAL_APPLICATION_LIMIT) -> int:
    if subscription is None or getattr(subscription, "status", None) != "active":
        return free_trial_limit
    return max(0, int(getattr(subscription, "applications_limit", 0) or 0))


def current_period_start(now: datetime | None = None) -> datetime:
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    now = now.astimezone(UTC)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def evaluate_eligibility(
    profile: Any | None,
    subscription: Any | None,
    period_count: int,
    *,
    free_trial_limit: int = FREE_TRIAL_APPLICATION_LIMIT,
) -> EligibilityResult:
    limit = application_limit(subscription, free_trial_limit=free_trial_limit)
    quota_remaining = max(0, limit - max(0, period_count))

    if not is_profile_complete(profile):
        reason = "profile missing" if profile is None else "profile incomplete"
        return EligibilityResult(eligible=False, quota_remaining=quota_remaining, limit=limit, reason=reason)

    if quota_remaining <= 0:
        return EligibilityResult(
            eligible=False,
            quota_remaining=0,
            limit=limit,
            reason=f"application limit reached ({period_count}/{limit})",
        )

    return EligibilityResult(eligible=True, quota_remaining=quota_remaining, limit=limit)
