from __future__ import annotations

from types import SimpleNamespace

import pytest

from autoapply.config import Settings
from autoapply.llm import providers
from autoapply.llm.router import LLMRouter
from autoapply.types import ProfileSnapshot

PROFILE = ProfileSnapshot(user_id="user-1", skills=("python", "sql"), experience_years=5, summary="Engineer")
JOB_MARKUP = "<html><body><h1>Backend Engineer</h1><p>Python required</p></body></html>"
FORM_MARKUP = "<nav>menu</nav><form><input id='email' type='email'><button>Apply</button></form>"


class FakeProvider:
    def __init__(self, name: str, payload=None, error: Exception | None = None):
        self.config = SimpleNamespace(name=name)
        self.payload = payload
        self.error = error
        self.calls: list[dict] = []

    def complete_json(self, *, model: str, prompt: str, images=()):
        self.calls.append({"model": model, "prompt": prompt, "images": list(images)})
        if self.error is not None:
            raise self.error
        return self.payload


def _router(openai: FakeProvider | None = None, local: FakeProvider | None = None, **overrides) -> LLMRouter:
    settings = Settings(
        openai_api_key=overrides.pop("openai_api_key", "sk-test"),
        local_llm_enabled=overrides.pop("local_llm_enabled", False),
        **overrides,
    )
    router = LLMRouter(settings=settings)
    router.pool._openai = openai or FakeProvider("openai", payload={})
    router.pool._local = local or FakeProvider("local", payload={})
    return router


def test_router_returns_safe_defaults_when_no_provider_configured() -> None:
    router = LLMRouter(settings=Settings(openai_api_key="", local_llm_enabled=False))

    match = router.score_match(JOB_MARKUP, PROFILE)
    form = router.analyze_form(b"png", FORM_MARKUP)

    assert match.is_match is False
    assert match.match_score == 0
    assert form.success is False
    assert form.fields == {}


def test_score_match_parses_provider_payload() -> None:
    openai = FakeProvider("openai", payload={"is_match": True, "match_score": 88.6, "reasoning": "Strong fit"})
    router = _router(openai=openai)

    result = router.score_match(JOB_MARKUP, PROFILE)

    assert result.is_match is True
    assert result.match_score == 89
    assert result.reasoning == "Strong fit"
    prompt = openai.calls[0]["prompt"]
    assert "Backend Engineer" in prompt
    assert "python, sql" in prompt
    assert openai.calls[0]["images"] == []


def test_score_match_clamps_out_of_range_scores() -> None:
    router = _router(openai=FakeProvider("openai", payload={"is_match": "true", "match_score": 250}))

    result = router.score_match(JOB_MARKUP, PROFILE)

    assert result.match_score == 100
    assert result.is_match is True


def test_score_match_malformed_payload_is_not_a_match() -> None:
    router = _router(openai=FakeProvider("openai", payload={"is_match": True, "match_score": "very high"}))

    result = router.score_match(JOB_MARKUP, PROFILE)

    assert result.is_match is False
    assert result.match_score == 0


def test_analyze_form_sends_screenshot_and_form_markup() -> None:
    openai = FakeProvider(
        "openai",
        payload={"success": True, "fields": {"#email": "Email", "": "phone", "#x": 3}},
    )
    router = _router(openai=openai)

    result = router.analyze_form(b"png-bytes", FORM_MARKUP)

    assert result.success is True
    assert result.fields == {"#email": "email"}
    assert openai.calls[0]["images"] == [b"png-bytes"]
    assert "menu" not in openai.calls[0]["prompt"]


def test_analyze_form_without_field_map_fails() -> None:
    router = _router(openai=FakeProvider("openai", payload={"success": True, "fields": ["#email"]}))

    result = router.analyze_form(b"png", FORM_MARKUP)

    assert result.success is False
    assert result.fields == {}


def test_router_falls_back_to_local_provider_on_error() -> None:
    openai = FakeProvider("openai", error=ConnectionError("upstream down"))
    local = FakeProvider("local", payload={"is_match": True, "match_score": 75, "reasoning": "ok"})
    router = _router(openai=openai, local=local, local_llm_enabled=True)

    result = router.score_match(JOB_MARKUP, PROFILE)

    assert result.match_score == 75
    assert local.calls[0]["model"] == router.settings.local_llm_model


def test_router_prefers_local_provider_when_configured() -> None:
    openai = FakeProvider("openai", payload={"success": True, "fields": {"#a": "email"}})
    local = FakeProvider("local", payload={"success": True, "fields": {"#b": "phone"}})
    router = _router(openai=openai, local=local, local_llm_enabled=True, llm_router_form_provider="local")

    result = router.analyze_form(b"", FORM_MARKUP)

    assert result.fields == {"#b": "phone"}
    assert openai.calls == []


def _refuse_client(**kwargs):
    raise AssertionError(f"no client should be built without credentials: {kwargs}")


def test_missing_api_key_never_builds_a_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(providers, "OpenAI", _refuse_client)
    router = LLMRouter(settings=Settings(openai_api_key="", local_llm_enabled=False))

    assert router.score_match(JOB_MARKUP, PROFILE).match_score == 0
    assert router.analyze_form(b"png", FORM_MARKUP).success is False
    assert router.pool._openai is None
    assert router.pool._local is None


def test_client_construction_error_degrades_to_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_client(**kwargs):
        raise RuntimeError("bad client options")

    monkeypatch.setattr(providers, "OpenAI", broken_client)
    router = LLMRouter(settings=Settings(openai_api_key="sk-test", local_llm_enabled=False))

    match = router.score_match(JOB_MARKUP, PROFILE)

    assert match.is_match is False
    assert match.match_score == 0


def test_missing_api_key_uses_enabled_local_provider() -> None:
    local = FakeProvider("local", payload={"is_match": True, "match_score": 90, "reasoning": "strong"})
    router = _router(openai_api_key="", local=local, local_llm_enabled=True)
    router.pool._openai = None

    assert router.score_match(JOB_MARKUP, PROFILE).match_score == 90
    assert router.pool._openai is None
