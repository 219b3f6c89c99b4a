from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ApplicationStatus = Literal["pending", "applied", "failed"]
LogStatus = Literal["success", "failed"]
AgentState = Literal["idle", "gating", "discovering", "applying"]

# Log actions in pipeline order; "error" is terminal and may follow any of them.
PIPELINE_ACTIONS: tuple[str, ...] = ("start", "navigate", "analyze", "form_analysis", "fill", "submit")
TERMINAL_ERROR_ACTION = "error"


class ProfileSnapshot(BaseModel):
    """Read-only view of a user's profile handed to the agent and its collaborators."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    user_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin_url: str = ""
    website_url: str = ""
    resume_url: str = ""
    summary: str = ""
    skills: tuple[str, ...] = ()
    experience_years: int = 0
    education: str = ""
    preferred_salary_min: int = 0
    preferred_salary_max: int = 0
    preferred_locations: tuple[str, ...] = ()
    preferred_job_types: tuple[str, ...] = ()
    preferred_remote: bool = False
    preferred_industries: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class SubscriptionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    user_id: str
    status: str = ""
    plan_name: str = ""
    applications_limit: int = 0


class EligibilityResult(BaseModel):
    eligible: bool
    quota_remaining: int
    limit: int
    reason: str = ""


class MatchResult(BaseModel):
    is_match: bool = False
    match_score: int = 0
    reasoning: str = ""

    @field_validator("match_score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> int:
        score = int(round(float(value)))
        return max(0, min(100, score))

    @classmethod
    def unavailable(cls, reasoning: str = "Error in analysis") -> "MatchResult":
        return cls(is_match=False, match_score=0, reasoning=reasoning)


class FormAnalysis(BaseModel):
    success: bool = False
    fields: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def unavailable(cls) -> "FormAnalysis":
        return cls(success=False, fields={})


class JobDetails(BaseModel):
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)


class FillReport(BaseModel):
    filled: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    skipped: list[str] = Field(default_factory=list)
    submit_selector: str | None = None


class CandidateOutcome(BaseModel):
    job_url: str
    application_id: int | None = None
    status: ApplicationStatus = "failed"
    failure_reason: str | None = None


class RunSummary(BaseModel):
    user_id: str
    eligible: bool = False
    quota_remaining: int = 0
    candidates: int = 0
    processed: int = 0
    applied: int = 0
    failed: int = 0
    cancelled: bool = False
    skipped_reason: str = ""
    outcomes: list[CandidateOutcome] = Field(default_factory=list)
