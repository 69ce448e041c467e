"""Runtime settings, read from ``JLPT_*`` environment variables or a .env file."""
import sys
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from jlpt_planner.bank import DEFAULT_BANK_PATH
from jlpt_planner.db import DEFAULT_DB_PATH


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="JLPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    db_path: str = Field(default=DEFAULT_DB_PATH, description="SQLite file holding planner state")
    bank_path: Path = Field(default=DEFAULT_BANK_PATH, description="Question bank (.yaml or .json)")
    log_level: str = Field(default="WARNING", description="Minimum level written to stderr")

    history_limit: int = Field(default=52, ge=1, description="Weekly-check entries kept")
    practice_log_limit: int = Field(default=2000, ge=1, description="Practice answers kept")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = "WARNING") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
