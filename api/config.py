"""
API configuration.

Settings are read from the environment (and the project's .env file) once,
at first use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

STORAGE_BACKENDS: Tuple[str, ...] = ("memory", "supabase")


@dataclass(frozen=True, slots=True)
class Settings:
    storage_backend: str = "memory"
    log_level: str = "INFO"
    cors_allow_origins: Tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.getenv("SALES_STORAGE_BACKEND", "memory").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"Invalid SALES_STORAGE_BACKEND: {backend!r}. "
                f"Expected one of: {', '.join(STORAGE_BACKENDS)}."
            )

        origins = tuple(
            origin.strip()
            for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
            if origin.strip()
        )

        return cls(
            storage_backend=backend,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_allow_origins=origins or ("*",),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
