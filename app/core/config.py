"""
Application configuration management.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://letters:letters@db:5432/letters"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    SLOW_QUERY_THRESHOLD_MS: int = 500

    # Security
    JWT_SECRET_KEY: str = "jwt-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"

    # Version history
    VERSION_LIST_DEFAULT_LIMIT: int = 50
    VERSION_LIST_MAX_LIMIT: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_DIR: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
