"""
config.py
Runtime settings read from MEMBERSHIP_DESK_* environment variables (or .env).
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the membership desk."""

    model_config = SettingsConfigDict(
        env_prefix="MEMBERSHIP_DESK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    backend: Literal["sqlite", "supabase"] = Field(
        "sqlite",
        description="Where profiles, memberships and transactions are stored.",
    )
    database_file: Path = Field(
        Path(__file__).with_name("membership.db"),
        description="SQLite file used by the sqlite backend.",
    )
    supabase_url: Optional[str] = Field(None, description="Supabase project URL.")
    supabase_anon_key: Optional[str] = Field(None, description="Supabase anon (public) key.")
    default_admin_email: str = Field(
        "admin@example.com",
        description="Administrator created on the first sqlite run.",
    )
    default_admin_password: str = Field(
        "admin123",
        description="Initial administrator password; must be changed on first login.",
    )
    log_level: str = Field("INFO", description="Root logger level.")

    @model_validator(mode="after")
    def _check_supabase(self) -> "Settings":
        if self.backend == "supabase" and not (self.supabase_url and self.supabase_anon_key):
            raise ValueError(
                "MEMBERSHIP_DESK_SUPABASE_URL and MEMBERSHIP_DESK_SUPABASE_ANON_KEY "
                "are required when backend is 'supabase'."
            )
        self.database_file = Path(self.database_file).expanduser()
        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()
