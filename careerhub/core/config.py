"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Which backend the stores talk to
    storage_backend: Literal["mongo", "postgres"] = "mongo"

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "careerhub_user"
    postgres_password: str = "password"
    postgres_db: str = "careerhub_db"
    postgres_enable_rls: bool = False

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "careerhub_docs"

    # Identity provider (Supabase GoTrue)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    supabase_jwt_secret: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # App
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    client_url: str = "http://localhost:8080"

    # Limits
    rate_limit_enabled: bool = True
    rate_limit: str = "100/15 minutes"
    max_body_bytes: int = 10 * 1024 * 1024
    max_upload_bytes: int = 5 * 1024 * 1024
    backend_timeout_seconds: float = 10.0

    # Aptitude tests
    passing_score: int = 60

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
