from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173"

    # Shared cache / budget store
    redis_url: str = "redis://localhost:6379/0"

    # AI gateway
    ai_enabled: bool = True
    # Comma-separated provider names, tried in order
    ai_fallback_chain: str = "openai,anthropic,ollama"
    # Comma-separated use_case=provider pairs, e.g. "pii_detection=anthropic"
    ai_use_case_preferences: str = ""
    ai_request_timeout: float = 30.0
    ai_strategy_weight: float = 0.8

    # Caching and token budgets
    ai_pii_cache_ttl_seconds: int = 24 * 60 * 60
    ai_purpose_cache_ttl_seconds: int = 48 * 60 * 60
    ai_default_token_budget: int = 0  # 0 = unlimited unless set per tenant
    ai_budget_fail_mode: Literal["open", "closed"] = "open"

    # OpenAI
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    openai_fast_model: str = "gpt-4o-mini"

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    anthropic_fast_model: str = "claude-haiku-4-5-20251001"
    anthropic_version: str = "2023-06-01"

    # Ollama (local, spoken to through the OpenAI-compatible API)
    ollama_base_url: str = "http://localhost:11434/v1"
    ollama_model: str = "llama3"

    # Generic HTTP provider, registered only when an endpoint is set
    generic_http_name: str = "custom"
    generic_http_endpoint: str = ""
    generic_http_api_key: str = ""
    generic_http_model: str = ""
    generic_http_completion_path: str = ""
    generic_http_request_template: str = ""
    generic_http_response_content_path: str = ""
    generic_http_response_tokens_path: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def fallback_chain(self) -> list[str]:
        return [p.strip() for p in self.ai_fallback_chain.split(",") if p.strip()]

    @property
    def use_case_preferences(self) -> dict[str, str]:
        prefs: dict[str, str] = {}
        for pair in self.ai_use_case_preferences.split(","):
            if "=" not in pair:
                continue
            use_case, provider = pair.split("=", 1)
            if use_case.strip() and provider.strip():
                prefs[use_case.strip()] = provider.strip()
        return prefs


@lru_cache
def get_settings() -> Settings:
    return Settings()
