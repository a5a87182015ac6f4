"""Application settings loaded from environment variables via pydantic-settings."""

from enum import StrEnum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(StrEnum):
    json = "json"
    console = "console"


class Settings(BaseSettings):
    """Central configuration, all values sourced from env vars or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Redis cache ─────────────────────────────────────────────────────────
    redis_url: str = "redis://localhost:6379/0"
    cache_enabled: bool = True
    cache_ttl_hours: float = 6.0

    # ── Rate limiting ───────────────────────────────────────────────────────
    rate_limit_per_minute: int = 60

    # ── LLM (OpenAI-compatible chat completions) ────────────────────────────
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    together_api_key: str = ""
    together_base_url: str = "https://api.together.xyz/v1"
    together_model: str = "meta-llama/Meta-Llama-3.1-8B-Instruct-Turbo"
    together_analysis_model: str = "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"
    llm_timeout_seconds: float = 60.0
    llm_max_concurrency: int = 4

    # ── Domain defaults ─────────────────────────────────────────────────────
    default_region: str = "KUPPAM/PALAMANER"
    crop_match_strict: bool = False

    # ── Observability ───────────────────────────────────────────────────────
    log_level: str = "info"
    log_format: LogFormat = LogFormat.json


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance (cached after first call)."""
    return Settings()
