"""Environment configuration for Albert."""
from __future__ import annotations

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    ENV: str = "dev"
    DIAG: int = 0

    DB_PATH: str = "albert.db"

    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_TIMEOUT: float = 30.0
    EMBEDDING_MODEL: str = "nomic-embed-text"

    SEARCH_LIMIT: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def is_prod(self) -> bool:
        return self.ENV.lower() == "prod"

    @cached_property
    def is_diag(self) -> bool:
        return bool(int(self.DIAG))


settings = Settings()
