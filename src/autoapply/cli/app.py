from __future__ import annotations

import json
from pathlib import Path

import typer
import uvicorn

from autoapply.api.app import create_app
from autoapply.config import get_settings
from autoapply.core.eligibility import current_period_start, evaluate_eligibility
from autoapply.core.runtime import build_agent_factory
from autoapply.db.init import init_database
from autoapply.db.repositories import Repository, profile_snapshot
from autoapply.db.session import SessionLocal
from autoapply.logging_config import configure_logging

app = typer.Typer(help="AutoApply CLI")
profile_app = typer.Typer(help="Manage user profiles")
subscription_app = typer.Typer(help="Manage user subscriptions")
agent_app = typer.Typer(help="Run job agents")
applications_app = typer.Typer(help="Inspect applications and their audit logs")

app.add_typer(profile_app, name="profile")
app.add_typer(subscription_app, name="subscription")
app.add_typer(agent_app, name="agent")
app.add_typer(applications_app, name="applications")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize database and data directories."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@profile_app.command("set")
def profile_set(
    user_id: str = typer.Option(..., "--user"),
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
) -> None:
    configure_logging()
    ensure_initialized()
    payload = json.loads(file.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise typer.BadParameter("profile file must contain a JSON object")

    with SessionLocal() as db:
        try:
            profile = Repository(db).upsert_profile(user_id, payload)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        typer.echo(profile_snapshot(profile).model_dump_json(indent=2))


@profile_app.command("show")
def profile_show(user_id: str = typer.Option(..., "--user")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        profile = Repository(db).get_profile(user_id)
        if not profile:
            raise typer.BadParameter(f"profile for user {user_id} not found")
        typer.echo(profile_snapshot(profile).model_dump_json(indent=2))


@subscription_app.command("set")
def subscription_set(
    user_id: str = typer.Option(..., "--user"),
    status: str = typer.Option("active", "--status"),
    plan: str = typer.Option("", "--plan"),
    limit: int = typer.Option(0, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        subscription = Repository(db).upsert_subscription(
            user_id,
            {"status": status, "plan_name": plan, "applications_limit": limit},
        )
        typer.echo(
            json.dumps(
                {
                    "user_id": subscription.user_id,
                    "status": subscription.status,
                    "plan_name": subscription.plan_name,
                    "applications_limit": subscription.applications_limit,
                },
                indent=2,
            )
        )


@agent_app.command("eligibility")
def agent_eligibility(user_id: str = typer.Option(..., "--user")) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    with SessionLocal() as db:
        repo = Repository(db)
        profile = repo.get_profile(user_id)
        period_count = repo.count_applications_since(user_id, current_period_start())
        result = evaluate_eligibility(
            profile_snapshot(profile) if profile else None,
            repo.get_subscription(user_id),
            period_count,
            free_trial_limit=settings.free_trial_application_limit,
        )
        typer.echo(json.dumps({"period_count": period_count, **result.model_dump()}, indent=2))


@agent_app.command("run-once")
def agent_run_once(user_id: str = typer.Option(..., "--user")) -> None:
    """Run a single gated match-and-apply pass for one user, without scheduling."""
    configure_logging()
    ensure_initialized()
    agent = build_agent_factory(SessionLocal)(user_id)
    summary = agent.run_once()
    typer.echo(summary.model_dump_json(indent=2))


@applications_app.command("list")
def applications_list(
    user_id: str = typer.Option(..., "--user"),
    limit: int = typer.Option(20, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = Repository(db).list_applications(user_id, limit=limit)
        typer.echo(
            json.dumps(
                [
                    {
                        "id": row.id,
                        "job_title": row.job_title,
                        "company_name": row.company_name,
                        "job_url": row.job_url,
                        "status": row.status,
                        "match_score": row.match_score,
                        "failure_reason": row.failure_reason,
                        "created_at": row.created_at.isoformat() if row.created_at else None,
                    }
                    for row in rows
                ],
                indent=2,
            )
        )


@applications_app.command("logs")
def applications_logs(application_id: int = typer.Option(..., "--application-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        if not repo.get_application(application_id):
            raise typer.BadParameter(f"application {application_id} not found")
        typer.echo(
            json.dumps(
                [
                    {
                        "id": row.id,
                        "action": row.action,
                        "status": row.status,
                        "message": row.message,
                        "screenshot_url": row.screenshot_url,
                        "error_details": row.error_details_json,
                        "created_at": row.created_at.isoformat() if row.created_at else None,
                    }
                    for row in repo.list_logs(application_id)
                ],
                indent=2,
            )
        )


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
