"""Centralized configuration — all env vars in one place."""

import os

from dotenv import load_dotenv

load_dotenv()

TMDB_BASE_URL = "https://api.themoviedb.org/3"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = _env_int("PORT", 5050)

        # TMDB upstream
        self.tmdb_token: str | None = os.getenv("TMDB_TOKEN") or None
        self.tmdb_base_url: str = os.getenv("TMDB_BASE_URL", TMDB_BASE_URL)
        self.tmdb_timeout_seconds: float = _env_float("TMDB_TIMEOUT_SECONDS", 10.0)
        self.tmdb_language: str = os.getenv("TMDB_LANGUAGE", "en-US")
        self.trending_max_pages: int = _env_int("TRENDING_MAX_PAGES", 5)

        # Response cache
        self.cache_ttl_seconds: float = _env_float("CACHE_TTL_SECONDS", 60.0)
        self.cache_max_entries: int = _env_int("CACHE_MAX_ENTRIES", 1024)
        self.cache_coalesce: bool = _env_bool("CACHE_COALESCE", True)

        self.event_loop_lag_interval_seconds: float = _env_float("EVENT_LOOP_LAG_INTERVAL_SECONDS", 1.0)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of missing required env vars."""
        required = {"TMDB_TOKEN": self.tmdb_token}
        return [var for var, value in required.items() if not value]


settings = Settings()
