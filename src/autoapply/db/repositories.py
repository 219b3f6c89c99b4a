from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from autoapply.db.models import Application, ApplicationLog, Subscription, UserProfile
from autoapply.types import ProfileSnapshot, SubscriptionSnapshot

PROFILE_LIST_FIELDS = {
    "skills": "skills_json",
    "preferred_locations": "preferred_locations_json",
    "preferred_job_types": "preferred_job_types_json",
    "preferred_industries": "preferred_industries_json",
}

APPLICATION_MUTABLE_FIELDS = {
    "job_title",
    "company_name",
    "job_board",
    "location",
    "job_description",
    "match_score",
    "status",
    "failure_reason",
    "applied_at",
}


def profile_snapshot(profile: UserProfile) -> ProfileSnapshot:
    return ProfileSnapshot(
        user_id=profile.user_id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        email=profile.email,
        phone=profile.phone,
        location=profile.location,
        linkedin_url=profile.linkedin_url,
        website_url=profile.website_url,
        resume_url=profile.resume_url,
        summary=profile.summary,
        skills=tuple(profile.skills_json or ()),
        experience_years=profile.experience_years or 0,
        education=profile.education,
        preferred_salary_min=profile.preferred_salary_min or 0,
        preferred_salary_max=profile.preferred_salary_max or 0,
        preferred_locations=tuple(profile.preferred_locations_json or ()),
        preferred_job_types=tuple(profile.preferred_job_types_json or ()),
        preferred_remote=bool(profile.preferred_remote),
        preferred_industries=tuple(profile.preferred_industries_json or ()),
    )


def subscription_snapshot(subscription: Subscription) -> SubscriptionSnapshot:
    return SubscriptionSnapshot(
        user_id=subscription.user_id,
        status=subscription.status,
        plan_name=subscription.plan_name,
        applications_limit=subscription.applications_limit,
    )


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self.session.scalar(select(UserProfile).where(UserProfile.user_id == user_id))

    def upsert_profile(self, user_id: str, values: dict[str, Any]) -> UserProfile:
        payload = {}
        for key, value in values.items():
            column = PROFILE_LIST_FIELDS.get(key, key)
            if not hasattr(UserProfile, column) or column in {"id", "user_id", "created_at", "updated_at"}:
                raise ValueError(f"unsupported profile field '{key}'")
            payload[column] = list(value) if column in PROFILE_LIST_FIELDS.values() else value

        existing = self.get_profile(user_id)
        if existing:
            for key, value in payload.items():
                setattr(existing, key, value)
            obj = existing
        else:
            obj = UserProfile(user_id=user_id, **payload)
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def get_subscription(self, user_id: str) -> Subscription | None:
        return self.session.scalar(select(Subscription).where(Subscription.user_id == user_id))

    def upsert_subscription(self, user_id: str, values: dict[str, Any]) -> Subscription:
        existing = self.get_subscription(user_id)
        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            obj = existing
        else:
            obj = Subscription(user_id=user_id, **values)
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def list_active_subscriber_ids(self) -> list[str]:
        statement = (
            select(Subscription.user_id)
            .where(Subscription.status == "active")
            .order_by(Subscription.user_id.asc())
        )
        return list(self.session.scalars(statement).all())

    def create_application(
        self,
        *,
        user_id: str,
        job_url: str,
        job_title: str = "",
        company_name: str = "",
        job_board: str = "",
    ) -> Application:
        application = Application(
            user_id=user_id,
            job_url=job_url,
            job_title=job_title,
            company_name=company_name,
            job_board=job_board or urlparse(job_url).netloc,
            status="pending",
        )
        self.session.add(application)
        self.session.commit()
        self.session.refresh(application)
        return application

    def get_application(self, application_id: int) -> Application | None:
        return self.session.get(Application, application_id)

    def update_application(self, application_id: int, values: dict[str, Any], *, commit: bool = True) -> Application:
        application = self.session.get(Application, application_id)
        if not application:
            raise ValueError(f"application {application_id} not found")

        for key, value in values.items():
            if key not in APPLICATION_MUTABLE_FIELDS:
                raise ValueError(f"application field '{key}' is not mutable")
            setattr(application, key, value)

        if commit:
            self.session.commit()
            self.session.refresh(application)
        return application

    def add_log(
        self,
        *,
        application_id: int,
        action: str,
        status: str,
        message: str = "",
        screenshot_url: str | None = None,
        error_details: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> ApplicationLog:
        entry = ApplicationLog(
            application_id=application_id,
            action=action,
            status=status,
            message=message,
            screenshot_url=screenshot_url,
            error_details_json=error_details,
        )
        self.session.add(entry)
        if commit:
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def count_applications_since(self, user_id: str, since: datetime) -> int:
        statement = select(func.count(Application.id)).where(
            Application.user_id == user_id,
            Application.created_at >= since,
        )
        return int(self.session.scalar(statement) or 0)

    def list_applications(self, user_id: str, limit: int | None = None) -> list[Application]:
        statement = (
            select(Application)
            .where(Application.user_id == user_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.scalars(statement).all())

    def list_logs(self, application_id: int) -> list[ApplicationLog]:
        statement = (
            select(ApplicationLog)
            .where(ApplicationLog.application_id == application_id)
            .order_by(ApplicationLog.id.asc())
        )
        return list(self.session.scalars(statement).all())
