from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from autoapply.core.eligibility import current_period_start
from autoapply.core.tracker import ApplicationTracker
from autoapply.db.models import Application
from autoapply.db.session import SessionLocal


def test_create_starts_pending_with_detected_board(tracker: ApplicationTracker) -> None:
    application_id = tracker.create(user_id="user-1", job_url="https://boards.greenhouse.io/acme/jobs/1")

    application = tracker.get(application_id)
    assert application.status == "pending"
    assert application.job_board == "boards.greenhouse.io"
    assert application.match_score is None
    assert tracker.list_logs(application_id) == []


def test_transition_writes_status_and_log_together(tracker: ApplicationTracker) -> None:
    application_id = tracker.create(user_id="user-1", job_url="https://jobs.example.com/1", job_board="example")

    tracker.transition(
        application_id,
        "failed",
        action="analyze",
        log_status="failed",
        message="Low match score: 40",
        details={"reasoning": "weak"},
        match_score=40,
        failure_reason="Low match score: 40",
    )

    application = tracker.get(application_id)
    assert application.status == "failed"
    assert application.match_score == 40
    assert application.failure_reason == "Low match score: 40"
    [log] = tracker.list_logs(application_id)
    assert (log.action, log.status, log.message) == ("analyze", "failed", "Low match score: 40")
    assert log.error_details_json == {"reasoning": "weak"}


def test_transition_rolls_back_when_fields_are_invalid(tracker: ApplicationTracker) -> None:
    application_id = tracker.create(user_id="user-1", job_url="https://jobs.example.com/1")

    with pytest.raises(ValueError):
        tracker.transition(
            application_id,
            "applied",
            action="submit",
            log_status="success",
            message="done",
            user_id="someone-else",
        )

    assert tracker.get(application_id).status == "pending"
    assert tracker.list_logs(application_id) == []


def test_update_rejects_status(tracker: ApplicationTracker) -> None:
    application_id = tracker.create(user_id="user-1", job_url="https://jobs.example.com/1")

    with pytest.raises(ValueError, match="transition"):
        tracker.update(application_id, status="applied")

    tracker.update(application_id, job_title="Engineer", company_name="Acme")
    application = tracker.get(application_id)
    assert application.status == "pending"
    assert application.job_title == "Engineer"


def test_append_log_is_best_effort(tracker: ApplicationTracker) -> None:
    application_id = tracker.create(user_id="user-1", job_url="https://jobs.example.com/1")

    assert tracker.append_log(application_id, "start", "success", "Starting") is True

    def broken_session():
        raise RuntimeError("database unavailable")

    assert ApplicationTracker(broken_session).append_log(application_id, "fill", "failed", "x") is False
    assert [log.action for log in tracker.list_logs(application_id)] == ["start"]


def test_list_for_user_is_newest_first_and_logs_oldest_first(tracker: ApplicationTracker) -> None:
    first = tracker.create(user_id="user-1", job_url="https://jobs.example.com/1")
    second = tracker.create(user_id="user-1", job_url="https://jobs.example.com/2")
    tracker.create(user_id="user-2", job_url="https://jobs.example.com/3")

    assert [row.id for row in tracker.list_for_user("user-1")] == [second, first]
    assert [row.id for row in tracker.list_for_user("user-1", limit=1)] == [second]

    tracker.append_log(first, "start", "success", "one")
    tracker.append_log(first, "navigate", "success", "two")
    assert [log.message for log in tracker.list_logs(first)] == ["one", "two"]


def test_count_in_period_ignores_previous_months(tracker: ApplicationTracker) -> None:
    period_start = current_period_start()
    tracker.create(user_id="user-1", job_url="https://jobs.example.com/new")

    with SessionLocal() as db:
        db.add(
            Application(
                user_id="user-1",
                job_url="https://jobs.example.com/old",
                status="applied",
                created_at=period_start - timedelta(seconds=1),
                updated_at=datetime.now(UTC),
            )
        )
        db.commit()

    assert tracker.count_in_period("user-1", period_start) == 1
    assert tracker.count_in_period("user-2", period_start) == 0
