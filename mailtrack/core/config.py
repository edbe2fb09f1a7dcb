"""Application configuration powered by environment variables."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load variables from a local .env file if present.
load_dotenv()


class Settings(BaseSettings):
    """Strongly typed configuration for the service."""

    app_name: str = "Mailtrack"
    environment: str = "development"
    api_version: str = "v1"
    database_url: str = "sqlite:///./mailtrack.db"
    allowed_origins: Annotated[List[str], NoDecode] = ["http://localhost", "http://localhost:3000"]
    sns_verify_signatures: bool = False
    sns_allowed_topic_arns: Annotated[List[str], NoDecode] = []
    sns_http_timeout_seconds: int = 5

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @field_validator("database_url", mode="before")
    @classmethod
    def strip_wrapping_quotes(cls, value: str) -> str:
        """Allow quoted URLs in env files."""
        if isinstance(value, str):
            return value.strip().strip('"').strip("'")
        return value

    @field_validator("allowed_origins", "sns_allowed_topic_arns", mode="before")
    @classmethod
    def split_csv(cls, value: str | List[str]) -> List[str]:
        """Allow comma separated lists in env files."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("sns_http_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("sns_http_timeout_seconds must be positive")
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance for reuse across the app."""

    return Settings()


settings = get_settings()
