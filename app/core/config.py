# app/core/config.py
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./retail_engine.db"
    DATABASE_ECHO: bool = False

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and ("localhost" in v or v.startswith("sqlite")):
            raise ValueError("🚨 Production environment cannot use a local database!")
        return v

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === System ===
    APP_NAME: str = "Retail Inventory Valuation Engine"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    # === Ledger ===
    LEDGER_TRANSACTION_TIMEOUT_SECONDS: float = 5.0

    # === Business Rules ===
    STABLE_TREND_THRESHOLD: float = 0.02
    LOW_MARGIN_PERCENT: float = 5.0
    RANKING_LIMIT: int = 5
    TRAJECTORY_CHANGE_PERCENT: float = 20.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Create a global settings instance
settings = Settings()
