"""
Configuration for the Social API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the API server."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # MongoDB
    database_url: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("DATABASE_URL", "MONGO_URI"),
    )
    database_name: str = Field(default="social")

    # Bearer tokens
    jwt_secret: str = Field(default="")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_minutes: int = Field(default=60)
    bcrypt_rounds: int = Field(default=10)

    # Comma separated list, empty means same-origin only
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=list)

    uploads_dir: str = Field(default="uploads")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    log_level: str = Field(default="INFO")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
