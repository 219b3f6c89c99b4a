from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from autoapply.browser.driver import BrowserSessionDriver
from autoapply.config import Settings, get_settings
from autoapply.core.agent import UserAgent
from autoapply.core.collaborators import FormAnalyzer, JobDiscovery, MatchScorer
from autoapply.core.discovery import build_discovery
from autoapply.core.heuristics import HeuristicFormAnalyzer, KeywordMatchScorer
from autoapply.core.pipeline import ApplyPipeline
from autoapply.core.registry import AgentRegistry
from autoapply.core.tracker import ApplicationTracker
from autoapply.llm.router import LLMRouter


def build_semantic_backends(settings: Settings) -> tuple[MatchScorer, FormAnalyzer]:
    router = LLMRouter(settings) if "llm" in {settings.match_scorer_backend, settings.form_analyzer_backend} else None

    scorer: MatchScorer = (
        KeywordMatchScorer(threshold=settings.match_score_threshold)
        if settings.match_scorer_backend == "heuristic"
        else router
    )
    analyzer: FormAnalyzer = HeuristicFormAnalyzer() if settings.form_analyzer_backend == "heuristic" else router
    return scorer, analyzer


def build_agent_factory(
    session_factory: Callable[[], Session],
    *,
    settings: Settings | None = None,
    discovery: JobDiscovery | None = None,
    scorer: MatchScorer | None = None,
    analyzer: FormAnalyzer | None = None,
    driver: BrowserSessionDriver | None = None,
) -> Callable[[str], UserAgent]:
    settings = settings or get_settings()
    if scorer is None or analyzer is None:
        default_scorer, default_analyzer = build_semantic_backends(settings)
        scorer = scorer or default_scorer
        analyzer = analyzer or default_analyzer

    tracker = ApplicationTracker(session_factory)
    pipeline = ApplyPipeline(
        tracker=tracker,
        driver=driver or BrowserSessionDriver(settings),
        scorer=scorer,
        analyzer=analyzer,
        settings=settings,
    )
    discovery = discovery or build_discovery(settings)

    def factory(user_id: str) -> UserAgent:
        return UserAgent(
            user_id,
            session_factory=session_factory,
            tracker=tracker,
            discovery=discovery,
            pipeline=pipeline,
            settings=settings,
        )

    return factory


def build_agent_registry(
    session_factory: Callable[[], Session],
    *,
    settings: Settings | None = None,
    **collaborators,
) -> AgentRegistry:
    settings = settings or get_settings()
    factory = build_agent_factory(session_factory, settings=settings, **collaborators)
    return AgentRegistry(factory, interval_sec=settings.agent_interval_sec)
