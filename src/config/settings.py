"""
Configuration Management for the Personal Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Only operational knobs live in settings (where the data file is, how much
to log). The money rules - 2000 opening balance, 1000 minimum reserve,
7.1% FD and 9.6% SIP rates - are fixed constants in src.models.ledger and
are deliberately NOT configurable.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from LEDGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Persistence
    data_file: Path = Field(
        default=Path("finance_data.txt"),
        description="Path of the ledger text file"
    )
    file_encoding: str = Field(
        default="utf-8",
        description="Encoding used to read and write the ledger file"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    audit_history_limit: int = Field(
        default=200,
        ge=1,
        le=10000,
        description="How many audit events to keep in memory"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept any standard logging level name, case-insensitively."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
