"""Application lifecycle tracker: durable Application records plus an append-only audit log.

Every status change goes through :meth:`ApplicationTracker.transition`, which
writes the new status and the log entry that explains it in one transaction.
:meth:`ApplicationTracker.update` refuses to touch ``status`` so there is no
way to change state silently.

Each call opens its own session from the factory, so one tracker can be shared
by every agent thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from autoapply.db.models import Application, ApplicationLog
from autoapply.db.repositories import Repository
from autoapply.types import ApplicationStatus, LogStatus

logger = logging.getLogger(__name__)


class ApplicationTracker:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def create(
        self,
        *,
        user_id: str,
        job_url: str,
        job_board: str = "",
        job_title: str = "",
        company_name: str = "",
    ) -> int:
        with self.session_factory() as session:
            application = Repository(session).create_application(
                user_id=user_id,
                job_url=job_url,
                job_title=job_title,
                company_name=company_name,
                job_board=job_board,
            )
            return application.id

    def get(self, application_id: int) -> Application | None:
        with self.session_factory() as session:
            return Repository(session).get_application(application_id)

    def update(self, application_id: int, **fields: Any) -> None:
        if "status" in fields:
            raise ValueError("status changes must go through transition() so they are logged")
        if not fields:
            return
        with self.session_factory() as session:
            Repository(session).update_application(application_id, fields)

    def transition(
        self,
        application_id: int,
        status: ApplicationStatus,
        *,
        action: str,
        log_status: LogStatus,
        message: str,
        details: dict[str, Any] | None = None,
        screenshot_url: str | None = None,
        **fields: Any,
    ) -> None:
        with self.session_factory() as session:
            repo = Repository(session)
            try:
                repo.update_application(application_id, {**fields, "status": status}, commit=False)
                repo.add_log(
                    application_id=application_id,
                    action=action,
                    status=log_status,
                    message=message,
                    screenshot_url=screenshot_url,
                    error_details=details,
                    commit=False,
                )
                session.commit()
            except Exception:
                session.rollback()
                raise

    def append_log(
        self,
        application_id: int,
        action: str,
        status: LogStatus,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        screenshot_url: str | None = None,
    ) -> bool:
        try:
            with self.session_factory() as session:
                Repository(session).add_log(
                    application_id=application_id,
                    action=action,
                    status=status,
                    message=message,
                    screenshot_url=screenshot_url,
                    error_details=details,
                )
        except Exception:
            logger.exception(
                "Failed to record application log application_id=%s action=%s", application_id, action
            )
            return False
        return True

    def count_in_period(self, user_id: str, period_start: datetime) -> int:
        with self.session_factory() as session:
            return Repository(session).count_applications_since(user_id, period_start)

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[Application]:
        with self.session_factory() as session:
            return Repository(session).list_applications(user_id, limit=limit)

    def list_logs(self, application_id: int) -> list[ApplicationLog]:
        with self.session_factory() as session:
            return Repository(session).list_logs(application_id)
