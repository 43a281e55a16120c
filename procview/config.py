from functools import lru_cache
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # LLM provider for the analysis report ("openai" or "anthropic").
    # Keys default to empty so a missing credential is reported by the
    # analysis requester instead of failing settings validation.
    llm_provider: Literal["openai", "anthropic"] = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = ""  # Optional OpenAI-compatible proxy URL
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # Single-slot storage for the last saved analysis
    analysis_state_path: str = "~/.procview/cpu_analysis_result.json"

    # Live stream simulation
    stream_interval_seconds: float = 1.0
    stream_window: int = 100

    default_cpu_threshold: int = 80

    # Streamlit UI -> FastAPI backend
    api_url: str = "http://localhost:8000"

    log_level: str = "INFO"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def active_model(self) -> str:
        return self.anthropic_model if self.llm_provider == "anthropic" else self.openai_model


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()
