from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from autoapply.db.base import Base, TimestampMixin


class UserProfile(TimestampMixin, Base):
    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    linkedin_url: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    website_url: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    resume_url: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    summary: Mapped[str] = mapped_column(Text, default="", nullable=False)
    skills_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    experience_years: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    education: Mapped[str] = mapped_column(Text, default="", nullable=False)
    preferred_salary_min: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    preferred_salary_max: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    preferred_locations_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    preferred_job_types_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    preferred_remote: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    preferred_industries_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)


class Subscription(TimestampMixin, Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="inactive", nullable=False)
    plan_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    plan_price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    applications_limit: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_period_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Application(TimestampMixin, Base):
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    job_title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    job_url: Mapped[str] = mapped_column(String(800), nullable=False)
    job_board: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    job_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    match_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(40), default="pending", nullable=False)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ApplicationLog(TimestampMixin, Base):
    __tablename__ = "application_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), index=True
    )
    action: Mapped[str] = mapped_column(String(80), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, default="", nullable=False)
    screenshot_url: Mapped[str | None] = mapped_column(String(800), nullable=True)
    error_details_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
