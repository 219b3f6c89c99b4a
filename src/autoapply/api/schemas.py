from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin_url: str | None = None
    website_url: str | None = None
    resume_url: str | None = None
    summary: str | None = None
    skills: list[str] | None = None
    experience_years: int | None = Field(default=None, ge=0)
    education: str | None = None
    preferred_salary_min: int | None = Field(default=None, ge=0)
    preferred_salary_max: int | None = Field(default=None, ge=0)
    preferred_locations: list[str] | None = None
    preferred_job_types: list[str] | None = None
    preferred_remote: bool | None = None
    preferred_industries: list[str] | None = None


class ProfileResponse(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    location: str
    summary: str
    skills: list[str]
    experience_years: int
    preferred_remote: bool
    preferred_industries: list[str]
    complete: bool


class SubscriptionUpdateRequest(BaseModel):
    status: str
    plan_name: str = ""
    plan_price: int = Field(default=0, ge=0)
    applications_limit: int = Field(default=0, ge=0)
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None


class SubscriptionResponse(BaseModel):
    user_id: str
    status: str
    plan_name: str
    applications_limit: int
    agent_starting: bool = False


class EligibilityResponse(BaseModel):
    user_id: str
    eligible: bool
    quota_remaining: int
    limit: int
    period_count: int
    reason: str


class AgentStatusResponse(BaseModel):
    user_id: str
    running: bool
    state: str = "idle"
    current_index: int | None = None
    last_run: dict[str, Any] | None = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    job_title: str
    company_name: str
    job_url: str
    job_board: str
    location: str
    match_score: int | None
    status: str
    failure_reason: str | None
    applied_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ApplicationLogResponse(BaseModel):
    id: int
    application_id: int
    action: str
    status: str
    message: str
    screenshot_url: str | None
    error_details: dict[str, Any] | None
    created_at: datetime
