from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "AutoApply"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/autoapply.db"
    data_dir: Path = Path("./data")
    artifact_dir: Path = Path("./data/artifacts")

    agent_interval_hours: float = 4.0
    agent_pacing_sec: float = 5.0
    start_agents_on_boot: bool = False

    discovery_backend: str = "static"
    discovery_max_candidates: int = 10
    discovery_seed_urls: str = ""
    discovery_listing_urls: str = ""
    discovery_link_pattern: str = r"/jobs?/"
    discovery_timeout_sec: int = 30

    match_scorer_backend: str = "llm"
    form_analyzer_backend: str = "llm"
    match_score_threshold: int = 70
    free_trial_application_limit: int = 2
    scorer_markup_chars: int = 3000
    analyzer_markup_chars: int = 2000

    browser_headless: bool = True
    browser_sandbox_args: str = "--no-sandbox,--disable-setuid-sandbox"
    browser_nav_timeout_sec: int = 30
    browser_action_timeout_sec: int = 10
    browser_type_delay_ms: int = 40
    save_screenshots: bool = True
    auto_submit_enabled: bool = False

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_scorer: str = "gpt-4o-mini"
    openai_model_form: str = "gpt-4o-mini"
    openai_timeout_sec: int = 60

    local_llm_enabled: bool = True
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    llm_router_default: str = "openai"
    llm_router_score_provider: str = "openai"
    llm_router_form_provider: str = "openai"

    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("discovery_backend")
    @classmethod
    def validate_discovery_backend(cls, value: str) -> str:
        allowed = {"static", "listing"}
        if value not in allowed:
            raise ValueError(f"discovery_backend must be one of {sorted(allowed)}")
        return value

    @field_validator("match_scorer_backend", "form_analyzer_backend")
    @classmethod
    def validate_semantic_backend(cls, value: str) -> str:
        allowed = {"llm", "heuristic"}
        if value not in allowed:
            raise ValueError(f"semantic backend must be one of {sorted(allowed)}")
        return value

    @field_validator("match_score_threshold")
    @classmethod
    def validate_threshold(cls, value: int) -> int:
        if value < 0 or value > 100:
            raise ValueError("match_score_threshold must be between 0 and 100")
        return value

    @property
    def agent_interval_sec(self) -> float:
        return self.agent_interval_hours * 3600

    @property
    def cors_origin_list(self) -> list[str]:
        return split_csv(self.cors_origins)

    @property
    def discovery_seed_url_list(self) -> list[str]:
        return split_csv(self.discovery_seed_urls)

    @property
    def discovery_listing_url_list(self) -> list[str]:
        return split_csv(self.discovery_listing_urls)

    @property
    def browser_launch_args(self) -> list[str]:
        return split_csv(self.browser_sandbox_args)


def split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
