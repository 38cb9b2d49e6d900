"""Runtime configuration loaded from the environment (and a .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .ledger import DEFAULT_MIN_VALID_YEAR

DEFAULT_TIMEOUT = 15


@dataclass
class Settings:
    """Settings for the store clients and the ledger."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    access_token: Optional[str] = None
    min_valid_year: int = DEFAULT_MIN_VALID_YEAR
    timeout: int = DEFAULT_TIMEOUT

    @property
    def has_store(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings, loading ``env_file`` (or ./.env) first."""
    load_dotenv(env_file)
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        access_token=os.getenv("SUPABASE_ACCESS_TOKEN"),
        min_valid_year=_int_env("GIVEPOOL_MIN_VALID_YEAR", DEFAULT_MIN_VALID_YEAR),
        timeout=_int_env("GIVEPOOL_TIMEOUT", DEFAULT_TIMEOUT),
    )
