from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "CareerProof"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/careerproof.db"
    data_dir: Path = Path("./data")

    github_api_base_url: str = "https://api.github.com"
    github_timeout_sec: int = 30
    github_commit_count_timeout_sec: int = 5
    github_repo_page_size: int = 100
    compiler_max_repos: int = 10
    compiler_fetch_repo_contents: bool = False

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    # Per-task models; blank falls back to openai_model_default.
    openai_model_default: str = "gpt-5-mini"
    openai_model_narrative: str = ""
    openai_model_coach: str = ""
    openai_model_writer: str = ""
    openai_model_advisor: str = ""
    openai_timeout_sec: int = 60

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    llm_router_default: str = "openai"
    llm_router_narrative_provider: str = "openai"
    llm_router_coach_provider: str = "openai"
    llm_router_writer_provider: str = "openai"
    llm_router_advisor_provider: str = "openai"

    interview_default_weights: str = "correctness=40,clarity=30,completeness=30"
    interview_template_pool_size: int = 10

    advisor_objective_limit: int = 5
    advisor_history_limit: int = 50

    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("compiler_max_repos", "github_repo_page_size", "advisor_objective_limit", "advisor_history_limit")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def default_rubric_weights(self) -> dict[str, int]:
        weights: dict[str, int] = {}
        for pair in self.interview_default_weights.split(","):
            key, _, value = pair.partition("=")
            if key.strip() and value.strip():
                weights[key.strip()] = int(value)
        return weights


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
