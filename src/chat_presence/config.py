from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Chat room settings loaded from CHAT_* environment variables,
    falling back to a local .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Presence
    SWEEP_INTERVAL: float = Field(default=15.0, gt=0)
    PARTICIPANT_TIMEOUT: float = Field(default=10.0, gt=0)

    # Messages
    BROADCAST_TARGET: str = Field(default="Todos", min_length=1)
    MESSAGE_TIME_FORMAT: str = "%H:%M:%S"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # HTTP
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    CORS_ORIGINS: List[str] = ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance; the environment is read once."""
    return Settings()
