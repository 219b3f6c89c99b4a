from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from autoapply.config import Settings, get_settings
from autoapply.core.job_fetcher import extract_form_markup, markup_to_text
from autoapply.llm.prompts import FORM_ANALYSIS_PROMPT, MATCH_SCORE_PROMPT
from autoapply.llm.providers import LLMProvider, ProviderPool
from autoapply.types import FormAnalysis, MatchResult, ProfileSnapshot

logger = logging.getLogger(__name__)


class LLMRouter:
    """Match scorer and form analyzer backed by OpenAI-compatible providers.

    Every failure mode (no provider configured, transport error, malformed or
    non-JSON output, schema mismatch) degrades to the documented fallback value
    instead of raising.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.pool = ProviderPool(self.settings)

    def score_match(self, job_markup: str, profile: ProfileSnapshot) -> MatchResult:
        prompt = MATCH_SCORE_PROMPT.format(
            job_text=markup_to_text(job_markup)[: self.settings.scorer_markup_chars],
            skills=", ".join(profile.skills) or "Not specified",
            experience_years=profile.experience_years,
            summary=profile.summary or "Not provided",
            industries=", ".join(profile.preferred_industries) or "Any",
            locations=", ".join(profile.preferred_locations) or "Any",
            remote="yes" if profile.preferred_remote else "no preference",
        )

        data = self._call_json(task="score", prompt=prompt, model=self.settings.openai_model_scorer)
        if not data:
            return MatchResult.unavailable()

        try:
            return MatchResult.model_validate(
                {
                    "is_match": _as_bool(data.get("is_match")),
                    "match_score": data.get("match_score", 0),
                    "reasoning": str(data.get("reasoning", "")),
                }
            )
        except Exception:
            logger.warning("Invalid match score payload; treating job as not a match")
            return MatchResult.unavailable()

    def analyze_form(self, screenshot: bytes, markup: str) -> FormAnalysis:
        prompt = FORM_ANALYSIS_PROMPT.format(
            form_markup=extract_form_markup(markup, self.settings.analyzer_markup_chars),
        )
        images = [screenshot] if screenshot else []

        data = self._call_json(task="form", prompt=prompt, model=self.settings.openai_model_form, images=images)
        if not data:
            return FormAnalysis.unavailable()

        raw_fields = data.get("fields")
        if not isinstance(raw_fields, dict):
            logger.warning("Form analysis payload has no field map")
            return FormAnalysis.unavailable()

        fields = {
            str(selector).strip(): str(field_type).strip().lower()
            for selector, field_type in raw_fields.items()
            if str(selector).strip() and isinstance(field_type, str)
        }
        return FormAnalysis(success=_as_bool(data.get("success")), fields=fields)

    def _provider_order(self, task: str) -> tuple[str, str]:
        provider_name = {
            "score": self.settings.llm_router_score_provider,
            "form": self.settings.llm_router_form_provider,
        }.get(task, self.settings.llm_router_default)

        if provider_name == "local":
            return "local", "openai"
        return "openai", "local"

    def _provider(self, name: str) -> LLMProvider | None:
        if name == "openai" and self.settings.openai_api_key:
            return self.pool.openai()
        if name == "local" and self.settings.local_llm_enabled:
            return self.pool.local()
        return None

    def _call_json(
        self,
        *,
        task: str,
        prompt: str,
        model: str,
        images: Sequence[bytes] = (),
    ) -> dict[str, Any]:
        for name in self._provider_order(task):
            try:
                provider = self._provider(name)
                if provider is None:
                    continue
                provider_model = self.settings.local_llm_model if name == "local" else model
                return provider.complete_json(model=provider_model, prompt=prompt, images=images)
            except Exception as exc:
                logger.warning("LLM JSON call failed task=%s provider=%s error=%s", task, name, exc)
        return {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    if isinstance(value, (int, float)):
        return value != 0
    return False
