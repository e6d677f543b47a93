from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    PROJECT_NAME: str = "Class Schedule API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///../classboard.db"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_ALGORITHM: str = "HS256"
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Change feed. An empty REDIS_URL keeps the feed in-process.
    REDIS_URL: str = "redis://localhost:6379/0"
    FEED_CHANNEL: str = "classboard:changes"
    FEED_QUEUE_SIZE: int = 1000

    # Rate limiting
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    JOIN_RATE_LIMIT: str = "20/minute"
    SEARCH_RATE_LIMIT: str = "60/minute"

    # Class rules
    DEFAULT_MEMBER_LIMIT: int = 30
    MIN_MEMBER_LIMIT: int = 5
    MAX_MEMBER_LIMIT: int = 100
    DEFAULT_PRODI: str = "Teknik Informatika"
    NOTIFICATIONS_LIMIT: int = 50

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: List[str] | str) -> List[str]:
        """Allow both comma-separated strings and list inputs."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
