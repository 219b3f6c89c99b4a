from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field

_TEST_DATA_DIR = tempfile.mkdtemp(prefix="autoapply-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DATA_DIR}/autoapply-test.db")
os.environ.setdefault("DATA_DIR", _TEST_DATA_DIR)
os.environ.setdefault("ARTIFACT_DIR", os.path.join(_TEST_DATA_DIR, "artifacts"))
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from autoapply.config import Settings  # noqa: E402
from autoapply.core.agent import UserAgent  # noqa: E402
from autoapply.core.pipeline import ApplyPipeline  # noqa: E402
from autoapply.core.tracker import ApplicationTracker  # noqa: E402
from autoapply.db import models  # noqa: E402,F401
from autoapply.db.base import Base  # noqa: E402
from autoapply.db.repositories import Repository  # noqa: E402
from autoapply.db.session import SessionLocal, engine  # noqa: E402
from autoapply.types import FormAnalysis, MatchResult  # noqa: E402

COMPLETE_PROFILE = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "email": "ada@example.com",
    "phone": "+15555550100",
    "location": "London",
    "summary": "Backend engineer focused on data pipelines.",
    "experience_years": 6,
    "skills": ["python", "sql", "aws"],
}


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@dataclass
class FakeHandle:
    closed: bool = False
    url: str = ""


@dataclass
class FakeDriver:
    """Stands in for the Playwright driver; pages embed their URL so fakes can key on it."""

    navigate_errors: dict[str, Exception] = field(default_factory=dict)
    missing_selectors: set[str] = field(default_factory=set)
    opened: list[FakeHandle] = field(default_factory=list)
    typed: list[tuple[str, str, str]] = field(default_factory=list)
    clicked: list[str] = field(default_factory=list)
    close_calls: int = 0

    def open(self) -> FakeHandle:
        handle = FakeHandle()
        self.opened.append(handle)
        return handle

    def navigate(self, handle: FakeHandle, url: str) -> None:
        if url in self.navigate_errors:
            raise self.navigate_errors[url]
        handle.url = url

    def screenshot(self, handle: FakeHandle) -> bytes:
        return b"\x89PNG fake"

    def content(self, handle: FakeHandle) -> str:
        return (
            "<html><head><title>Backend Engineer</title>"
            '<meta property="og:site_name" content="Acme">'
            f'<meta name="job-url" content="{handle.url}"></head>'
            "<body><h1>Backend Engineer</h1><p>Python and SQL required.</p>"
            '<form><input id="email" type="email"><button type="submit">Apply</button></form>'
            "</body></html>"
        )

    def type(self, handle: FakeHandle, selector: str, text: str) -> None:
        if selector in self.missing_selectors:
            raise LookupError(f"No element matches selector {selector}")
        self.typed.append((handle.url, selector, text))

    def click(self, handle: FakeHandle, selector: str) -> None:
        self.clicked.append(selector)

    def close(self, handle: FakeHandle | None) -> None:
        self.close_calls += 1
        if handle is not None:
            handle.closed = True


@dataclass
class FakeScorer:
    default_score: int = 85
    overrides: dict[str, int] = field(default_factory=dict)
    calls: int = 0

    def score_match(self, job_markup: str, profile) -> MatchResult:
        self.calls += 1
        score = self.default_score
        for url, override in self.overrides.items():
            if f'"{url}"' in job_markup:
                score = override
        return MatchResult(is_match=score >= 70, match_score=score, reasoning="fake")


@dataclass
class FakeAnalyzer:
    fields: dict[str, str] = field(default_factory=lambda: {"email": "email"})
    failing_urls: set[str] = field(default_factory=set)
    calls: int = 0

    def analyze_form(self, screenshot: bytes, markup: str) -> FormAnalysis:
        self.calls += 1
        for url in self.failing_urls:
            if f'"{url}"' in markup:
                raise ConnectionError("analyzer unreachable")
        return FormAnalysis(success=True, fields=dict(self.fields))


@dataclass
class FakeDiscovery:
    urls: list[str] = field(default_factory=list)
    calls: int = 0

    def search(self, profile):
        self.calls += 1
        yield from self.urls


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        agent_pacing_sec=0,
        save_screenshots=False,
        artifact_dir=tmp_path / "artifacts",
        openai_api_key="",
        local_llm_enabled=False,
    )


@pytest.fixture
def tracker() -> ApplicationTracker:
    return ApplicationTracker(SessionLocal)


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def fake_scorer() -> FakeScorer:
    return FakeScorer()


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def fake_discovery() -> FakeDiscovery:
    return FakeDiscovery(urls=[f"https://jobs.example.com/job/{index}" for index in range(1, 6)])


@pytest.fixture
def pipeline(tracker, fake_driver, fake_scorer, fake_analyzer, test_settings) -> ApplyPipeline:
    return ApplyPipeline(
        tracker=tracker,
        driver=fake_driver,
        scorer=fake_scorer,
        analyzer=fake_analyzer,
        settings=test_settings,
    )


@pytest.fixture
def make_agent(tracker, pipeline, fake_discovery, test_settings):
    def _make(user_id: str = "user-1", **overrides) -> UserAgent:
        return UserAgent(
            user_id,
            session_factory=SessionLocal,
            tracker=tracker,
            discovery=overrides.get("discovery", fake_discovery),
            pipeline=overrides.get("pipeline", pipeline),
            settings=overrides.get("settings", test_settings),
        )

    return _make


@pytest.fixture
def complete_profile() -> dict:
    return dict(COMPLETE_PROFILE)


@pytest.fixture
def seed_user():
    def _seed(
        user_id: str = "user-1",
        *,
        profile: dict | None = None,
        subscription: dict | None = None,
    ) -> None:
        with SessionLocal() as db:
            repo = Repository(db)
            repo.upsert_profile(user_id, COMPLETE_PROFILE if profile is None else profile)
            if subscription is not None:
                repo.upsert_subscription(user_id, subscription)

    return _seed
