"""
Application Configuration
Pydantic Settings for environment-based configuration.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "Colletro"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ==========================================================================
    # Database
    # ==========================================================================
    database_url: str = "sqlite+aiosqlite:///./colletro.db"
    database_echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url

    # ==========================================================================
    # Authentication
    # ==========================================================================
    # Header carrying the id of the signed-in user, set by the auth proxy
    user_header: str = "X-User-Id"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
