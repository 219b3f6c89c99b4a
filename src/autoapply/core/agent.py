from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from itertools import islice

from sqlalchemy.orm import Session

from autoapply.config import Settings
from autoapply.core.collaborators import JobDiscovery
from autoapply.core.eligibility import current_period_start, evaluate_eligibility
from autoapply.core.pipeline import ApplyPipeline
from autoapply.core.tracker import ApplicationTracker
from autoapply.db.repositories import Repository, profile_snapshot, subscription_snapshot
from autoapply.types import AgentState, ProfileSnapshot, RunSummary, SubscriptionSnapshot

logger = logging.getLogger(__name__)


class UserAgent:
    """Recurring match-and-apply run for one user.

    A run gates on eligibility, pulls a bounded batch of candidates from
    discovery and applies to them one at a time with a pacing pause in
    between. Runs sharing a run lock never overlap, and :meth:`cancel`
    stops a run after the candidate currently in flight.
    """

    def __init__(
        self,
        user_id: str,
        *,
        session_factory: Callable[[], Session],
        tracker: ApplicationTracker,
        discovery: JobDiscovery,
        pipeline: ApplyPipeline,
        settings: Settings,
        run_lock: threading.Lock | None = None,
    ):
        self.user_id = user_id
        self.session_factory = session_factory
        self.tracker = tracker
        self.discovery = discovery
        self.pipeline = pipeline
        self.settings = settings
        self.state: AgentState = "idle"
        self.current_index: int | None = None
        self.last_summary: RunSummary | None = None
        self.run_lock = run_lock or threading.Lock()
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def run_once(self, *, wait: bool = False) -> RunSummary:
        """Run one pass; with ``wait`` block until any run holding the lock finishes instead of skipping."""
        if not self.run_lock.acquire(blocking=wait):
            logger.info("Run already in progress for user %s; skipping this trigger", self.user_id)
            return RunSummary(user_id=self.user_id, skipped_reason="run already in progress")

        try:
            summary = self._run()
        except Exception:
            logger.exception("Error processing jobs for user %s", self.user_id)
            summary = RunSummary(user_id=self.user_id, skipped_reason="run failed")
        finally:
            self.state = "idle"
            self.current_index = None
            self.run_lock.release()

        self.last_summary = summary
        return summary

    def _run(self) -> RunSummary:
        summary = RunSummary(user_id=self.user_id)
        if self.cancelled:
            summary.cancelled = True
            summary.skipped_reason = "agent cancelled"
            return summary

        self.state = "gating"
        profile, subscription = self._load_inputs()
        period_count = self.tracker.count_in_period(self.user_id, current_period_start())
        gate = evaluate_eligibility(
            profile,
            subscription,
            period_count,
            free_trial_limit=self.settings.free_trial_application_limit,
        )
        summary.quota_remaining = gate.quota_remaining
        if not gate.eligible or profile is None:
            logger.info("User %s not eligible for applications: %s", self.user_id, gate.reason)
            summary.skipped_reason = gate.reason
            return summary
        summary.eligible = True

        self.state = "discovering"
        candidates = self._discover(profile, min(self.settings.discovery_max_candidates, gate.quota_remaining))
        summary.candidates = len(candidates)
        logger.info(
            "Processing %d candidate jobs for user %s (quota remaining %d)",
            len(candidates),
            self.user_id,
            gate.quota_remaining,
        )

        self.state = "applying"
        for index, job_url in enumerate(candidates):
            if index > 0 and self._pause(self.settings.agent_pacing_sec):
                summary.cancelled = True
                break

            self.current_index = index
            outcome = self.pipeline.apply(self.user_id, profile, job_url)
            summary.outcomes.append(outcome)
            summary.processed += 1
            if outcome.status == "applied":
                summary.applied += 1
            else:
                summary.failed += 1

            if self.cancelled and index + 1 < len(candidates):
                summary.cancelled = True
                break

        logger.info(
            "Run finished for user %s: %d applied, %d failed",
            self.user_id,
            summary.applied,
            summary.failed,
        )
        return summary

    def _load_inputs(self) -> tuple[ProfileSnapshot | None, SubscriptionSnapshot | None]:
        with self.session_factory() as session:
            repo = Repository(session)
            profile = repo.get_profile(self.user_id)
            subscription = repo.get_subscription(self.user_id)
            return (
                profile_snapshot(profile) if profile else None,
                subscription_snapshot(subscription) if subscription else None,
            )

    def _discover(self, profile: ProfileSnapshot, limit: int) -> list[str]:
        candidates: list[str] = []
        if limit <= 0:
            return candidates
        try:
            for job_url in islice(self.discovery.search(profile), limit):
                candidates.append(job_url)
        except Exception as exc:
            logger.warning(
                "Job discovery failed for user %s after %d candidates: %s",
                self.user_id,
                len(candidates),
                exc,
            )
        return candidates

    def _pause(self, seconds: float) -> bool:
        """Wait between candidates; True when the agent was cancelled meanwhile."""
        if seconds <= 0:
            return self.cancelled
        return self._cancelled.wait(seconds)
