"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed application configuration."""

    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    default_model: str = Field(default="gemma3", alias="DEFAULT_MODEL")
    available_models: list[str] = Field(
        default_factory=lambda: ["llama3.1", "gemma3", "llama3"],
        alias="AVAILABLE_MODELS",
    )
    chat_timeout: float | None = Field(
        default=None, alias="CHAT_TIMEOUT", description="Seconds; unset waits indefinitely"
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", alias="LOG_LEVEL"
    )
    port: int = Field(default=8000, alias="PORT")
    max_text_length: int = Field(default=4000, alias="MAX_TEXT_LENGTH")
    ws_inactivity_timeout: float = Field(
        default=300.0, alias="WS_INACTIVITY_TIMEOUT", description="Seconds"
    )

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @model_validator(mode="after")
    def _default_model_is_available(self) -> "Settings":
        if self.default_model not in self.available_models:
            raise ValueError(
                f"DEFAULT_MODEL {self.default_model!r} is not one of AVAILABLE_MODELS "
                f"{self.available_models}"
            )
        return self

    @property
    def chat_endpoint(self) -> str:
        return f"{self.ollama_base_url.rstrip('/')}/api/chat"


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of settings."""

    return Settings()
