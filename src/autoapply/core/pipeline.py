from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from autoapply.browser.domain_adapters import detect_job_board
from autoapply.browser.driver import BrowserSessionDriver, SessionHandle
from autoapply.config import Settings
from autoapply.core.collaborators import FormAnalyzer, MatchScorer
from autoapply.core.job_fetcher import extract_job_details
from autoapply.core.tracker import ApplicationTracker
from autoapply.types import (
    TERMINAL_ERROR_ACTION,
    CandidateOutcome,
    FillReport,
    FormAnalysis,
    MatchResult,
    ProfileSnapshot,
)

logger = logging.getLogger(__name__)

FORM_ANALYSIS_FAILURE = "Could not analyze application form"
SUBMIT_FIELD = "submit_button"


def profile_value(profile: ProfileSnapshot, field_type: str) -> str | None:
    """Profile attribute for a semantic form field type; None when the type is not fillable."""
    values = {
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "full_name": profile.full_name,
        "email": profile.email,
        "phone": profile.phone,
        "location": profile.location,
        "linkedin_url": profile.linkedin_url,
        "website_url": profile.website_url,
    }
    return values.get(field_type)


class ApplyPipeline:
    """Runs one candidate job URL through score, analyze, fill and submit."""

    def __init__(
        self,
        *,
        tracker: ApplicationTracker,
        driver: BrowserSessionDriver,
        scorer: MatchScorer,
        analyzer: FormAnalyzer,
        settings: Settings,
    ):
        self.tracker = tracker
        self.driver = driver
        self.scorer = scorer
        self.analyzer = analyzer
        self.settings = settings

    def apply(self, user_id: str, profile: ProfileSnapshot, job_url: str) -> CandidateOutcome:
        outcome = CandidateOutcome(job_url=job_url)
        try:
            application_id = self.tracker.create(
                user_id=user_id,
                job_url=job_url,
                job_board=detect_job_board(job_url),
            )
        except Exception as exc:
            logger.exception("Could not create application record user=%s url=%s", user_id, job_url)
            outcome.failure_reason = f"Could not record application: {exc}"
            return outcome

        outcome.application_id = application_id
        self.tracker.append_log(application_id, "start", "success", "Starting application process")

        handle: SessionHandle | None = None
        try:
            handle = self.driver.open()
            status, reason = self._run_stages(application_id, handle, profile, job_url)
        except Exception as exc:
            logger.exception("Error processing job %s for user %s", job_url, user_id)
            status, reason = "failed", str(exc) or exc.__class__.__name__
            self._record_error(application_id, exc, reason)
        finally:
            self.driver.close(handle)

        outcome.status = status
        outcome.failure_reason = reason
        return outcome

    def _run_stages(
        self,
        application_id: int,
        handle: SessionHandle,
        profile: ProfileSnapshot,
        job_url: str,
    ) -> tuple[str, str | None]:
        self.driver.navigate(handle, job_url)
        screenshot = self.driver.screenshot(handle)
        markup = self.driver.content(handle)

        details = extract_job_details(markup)
        self.tracker.update(
            application_id,
            job_title=details.title,
            company_name=details.company,
            location=details.location,
            job_description=details.description,
        )
        self.tracker.append_log(
            application_id,
            "navigate",
            "success",
            f"Loaded {job_url}",
            screenshot_url=self._save_screenshot(application_id, screenshot),
        )

        match = self._score(markup, profile)
        if not match.is_match or match.match_score < self.settings.match_score_threshold:
            reason = f"Low match score: {match.match_score}"
            self.tracker.transition(
                application_id,
                "failed",
                action="analyze",
                log_status="failed",
                message=reason,
                details={"reasoning": match.reasoning, "is_match": match.is_match},
                match_score=match.match_score,
                failure_reason=reason,
            )
            return "failed", reason

        self.tracker.update(application_id, match_score=match.match_score)
        self.tracker.append_log(
            application_id,
            "analyze",
            "success",
            f"Match score: {match.match_score}",
            {"reasoning": match.reasoning},
        )

        form = self._analyze(screenshot, markup)
        if not form.success:
            self.tracker.transition(
                application_id,
                "failed",
                action="form_analysis",
                log_status="failed",
                message=FORM_ANALYSIS_FAILURE,
                failure_reason=FORM_ANALYSIS_FAILURE,
            )
            return "failed", FORM_ANALYSIS_FAILURE

        self.tracker.append_log(
            application_id,
            "form_analysis",
            "success",
            f"Identified {len(form.fields)} form fields",
            {"fields": form.fields},
        )

        report = self._fill(application_id, handle, form, profile)
        self.tracker.append_log(
            application_id,
            "fill",
            "success",
            f"Filled {len(report.filled)} fields, {len(report.failed)} failed, {len(report.skipped)} skipped",
            report.model_dump(exclude={"submit_selector"}),
        )

        if self.settings.auto_submit_enabled and report.submit_selector:
            self.driver.click(handle, report.submit_selector)

        self.tracker.transition(
            application_id,
            "applied",
            action="submit",
            log_status="success",
            message="Application submitted successfully",
            applied_at=datetime.now(UTC),
        )
        logger.info("Applied to %s (application_id=%s)", job_url, application_id)
        return "applied", None

    def _score(self, markup: str, profile: ProfileSnapshot) -> MatchResult:
        try:
            return self.scorer.score_match(markup, profile)
        except Exception as exc:
            logger.warning("Match scorer failed; treating job as not a match: %s", exc)
            return MatchResult.unavailable()

    def _analyze(self, screenshot: bytes, markup: str) -> FormAnalysis:
        try:
            return self.analyzer.analyze_form(screenshot, markup)
        except Exception as exc:
            logger.warning("Form analyzer failed: %s", exc)
            return FormAnalysis.unavailable()

    def _fill(
        self,
        application_id: int,
        handle: SessionHandle,
        form: FormAnalysis,
        profile: ProfileSnapshot,
    ) -> FillReport:
        report = FillReport()
        for selector, field_type in form.fields.items():
            if field_type == SUBMIT_FIELD:
                report.submit_selector = report.submit_selector or selector
                continue

            value = profile_value(profile, field_type)
            if not value:
                report.skipped.append(selector)
                continue

            try:
                self.driver.type(handle, selector, value)
            except Exception as exc:
                logger.warning("Error filling field %s: %s", selector, exc)
                report.failed[selector] = str(exc)
                self.tracker.append_log(
                    application_id,
                    "fill",
                    "failed",
                    f"Could not fill {field_type} field",
                    {"selector": selector, "field_type": field_type, "error": str(exc)},
                )
                continue
            report.filled.append(selector)
        return report

    def _record_error(self, application_id: int, exc: Exception, reason: str) -> None:
        try:
            self.tracker.transition(
                application_id,
                "failed",
                action=TERMINAL_ERROR_ACTION,
                log_status="failed",
                message=reason,
                details={"error_type": exc.__class__.__name__},
                failure_reason=reason,
            )
        except Exception:
            logger.exception("Failed to record failure for application_id=%s", application_id)

    def _save_screenshot(self, application_id: int, screenshot: bytes) -> str | None:
        if not self.settings.save_screenshots or not screenshot:
            return None

        ts = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
        path = Path(self.settings.artifact_dir) / f"application_{application_id}_{ts}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(screenshot)
        except OSError as exc:
            logger.warning("Could not save screenshot for application_id=%s: %s", application_id, exc)
            return None
        return str(path)
