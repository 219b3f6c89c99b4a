from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from autoapply.api.deps import get_db, get_registry
from autoapply.api.schemas import (
    AgentStatusResponse,
    ApplicationLogResponse,
    ApplicationResponse,
    EligibilityResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    SubscriptionResponse,
    SubscriptionUpdateRequest,
)
from autoapply.config import get_settings
from autoapply.core.eligibility import current_period_start, evaluate_eligibility, is_profile_complete
from autoapply.core.registry import AgentRegistry, validate_user_id
from autoapply.db.models import UserProfile
from autoapply.db.repositories import Repository, profile_snapshot

router = APIRouter(prefix="/api", tags=["api"])


def _checked_user_id(user_id: str) -> str:
    try:
        return validate_user_id(user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _profile_response(profile: UserProfile) -> ProfileResponse:
    snapshot = profile_snapshot(profile)
    return ProfileResponse(
        user_id=snapshot.user_id,
        first_name=snapshot.first_name,
        last_name=snapshot.last_name,
        email=snapshot.email,
        phone=snapshot.phone,
        location=snapshot.location,
        summary=snapshot.summary,
        skills=list(snapshot.skills),
        experience_years=snapshot.experience_years,
        preferred_remote=snapshot.preferred_remote,
        preferred_industries=list(snapshot.preferred_industries),
        complete=is_profile_complete(snapshot),
    )


@router.put("/users/{user_id}/profile", response_model=ProfileResponse)
def update_profile(user_id: str, payload: ProfileUpdateRequest, db: Session = Depends(get_db)) -> ProfileResponse:
    user_id = _checked_user_id(user_id)
    profile = Repository(db).upsert_profile(user_id, payload.model_dump(exclude_none=True))
    return _profile_response(profile)


@router.get("/users/{user_id}/profile", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db)) -> ProfileResponse:
    profile = Repository(db).get_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return _profile_response(profile)


@router.put("/users/{user_id}/subscription", response_model=SubscriptionResponse)
def update_subscription(
    user_id: str,
    payload: SubscriptionUpdateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    registry: AgentRegistry = Depends(get_registry),
) -> SubscriptionResponse:
    user_id = _checked_user_id(user_id)
    repo = Repository(db)
    previous = repo.get_subscription(user_id)
    was_active = previous is not None and previous.status == "active"

    subscription = repo.upsert_subscription(user_id, payload.model_dump())
    activated = subscription.status == "active" and not was_active
    if activated:
        background_tasks.add_task(registry.start, user_id)

    return SubscriptionResponse(
        user_id=subscription.user_id,
        status=subscription.status,
        plan_name=subscription.plan_name,
        applications_limit=subscription.applications_limit,
        agent_starting=activated,
    )


@router.get("/users/{user_id}/eligibility", response_model=EligibilityResponse)
def get_eligibility(user_id: str, db: Session = Depends(get_db)) -> EligibilityResponse:
    repo = Repository(db)
    profile = repo.get_profile(user_id)
    subscription = repo.get_subscription(user_id)
    period_count = repo.count_applications_since(user_id, current_period_start())
    result = evaluate_eligibility(
        profile_snapshot(profile) if profile else None,
        subscription,
        period_count,
        free_trial_limit=get_settings().free_trial_application_limit,
    )
    return EligibilityResponse(
        user_id=user_id,
        eligible=result.eligible,
        quota_remaining=result.quota_remaining,
        limit=result.limit,
        period_count=period_count,
        reason=result.reason,
    )


@router.post("/agents/{user_id}/start", response_model=AgentStatusResponse, status_code=status.HTTP_202_ACCEPTED)
def start_agent(
    user_id: str,
    background_tasks: BackgroundTasks,
    registry: AgentRegistry = Depends(get_registry),
) -> AgentStatusResponse:
    user_id = _checked_user_id(user_id)
    background_tasks.add_task(registry.start, user_id)
    return AgentStatusResponse(user_id=user_id, running=True)


@router.post("/agents/{user_id}/stop", response_model=AgentStatusResponse)
def stop_agent(user_id: str, registry: AgentRegistry = Depends(get_registry)) -> AgentStatusResponse:
    user_id = _checked_user_id(user_id)
    registry.stop(user_id)
    return AgentStatusResponse(user_id=user_id, running=False)


@router.get("/agents/{user_id}", response_model=AgentStatusResponse)
def get_agent(user_id: str, registry: AgentRegistry = Depends(get_registry)) -> AgentStatusResponse:
    agent = registry.get(user_id)
    if agent is None:
        return AgentStatusResponse(user_id=user_id, running=False)
    return AgentStatusResponse(
        user_id=user_id,
        running=registry.is_running(user_id),
        state=agent.state,
        current_index=agent.current_index,
        last_run=agent.last_summary.model_dump(exclude={"outcomes"}) if agent.last_summary else None,
    )


@router.get("/users/{user_id}/applications", response_model=list[ApplicationResponse])
def list_applications(user_id: str, limit: int = 100, db: Session = Depends(get_db)) -> list[ApplicationResponse]:
    rows = Repository(db).list_applications(user_id, limit=limit)
    return [ApplicationResponse.model_validate(row) for row in rows]


@router.get("/applications/{application_id}/logs", response_model=list[ApplicationLogResponse])
def list_application_logs(application_id: int, db: Session = Depends(get_db)) -> list[ApplicationLogResponse]:
    repo = Repository(db)
    if not repo.get_application(application_id):
        raise HTTPException(status_code=404, detail="Application not found")
    return [
        ApplicationLogResponse(
            id=row.id,
            application_id=row.application_id,
            action=row.action,
            status=row.status,
            message=row.message,
            screenshot_url=row.screenshot_url,
            error_details=row.error_details_json,
            created_at=row.created_at,
        )
        for row in repo.list_logs(application_id)
    ]
