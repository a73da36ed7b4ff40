from __future__ import annotations

from functools import lru_cache
from typing import Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DETAIL_MESSAGE = "An unexpected error occurred"


class Settings(BaseSettings):
    """Problem details configuration loaded from environment variables.

    Notes:
      - Every variable is prefixed with PROBLEM_DETAILS_ (e.g. PROBLEM_DETAILS_LOG_LEVEL).
      - DEFAULT_TYPES_MAP is read as a JSON object: {"404": "https://example.com/not-found"}.
      - Extra env vars are ignored to keep upgrades painless.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROBLEM_DETAILS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---- Debug ----
    # Attach the "exception" extension (class, code, message, file, line, trace, stack).
    INCLUDE_THROWABLE_DETAILS: bool = Field(default=False)
    EXPOSE_FRAGILE_MESSAGE: bool = Field(default=False, description="Show raw error messages as detail")

    # ---- Payload ----
    DEFAULT_DETAIL_MESSAGE: str = Field(default=DEFAULT_DETAIL_MESSAGE)
    DEFAULT_TYPES_MAP: Dict[int, str] = Field(default_factory=dict)

    # ---- Runtime ----
    LOG_LEVEL: str = Field(default="INFO")

    @field_validator("DEFAULT_TYPES_MAP")
    @classmethod
    def _types_map_statuses(cls, v: Dict[int, str]) -> Dict[int, str]:
        for status in v:
            if not 100 <= status <= 599:
                raise ValueError(f"DEFAULT_TYPES_MAP status {status} is outside 100-599")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def _log_level_upper(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
