from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Any, Literal
from functools import lru_cache
from ..validators.config_validators import normalize_token

class Settings(BaseSettings):
    """
    Settings loaded from the environment (and an optional `.env` file).

    Only the ambient concerns live here: where the default engine points and how logging
    behaves. Repositories and services take their collaborators as arguments and never
    read settings themselves.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/crud-data")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """
        Normalize LOG_LEVEL to uppercase before the Literal check, so `LOG_LEVEL=debug` is accepted.
        """
        return normalize_token(v, upper=True)

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> Any:
        """
        Normalize LOG_FORMAT to lowercase.
        """
        return normalize_token(v, upper=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

# Settings take no arguments and come from the environment, so one cached instance is enough.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
