"""
Configuration helpers for the Farwell backend.

Every setting is read from the environment once and exposed as a frozen
Settings object; tests reset it with ``get_settings.cache_clear()``.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    database_url: str
    storage_root: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    access_token_ttl_seconds: int
    expose_activation_token: bool
    cache_backend: str
    redis_url: str
    employee_cache_ttl_seconds: int
    max_upload_kb: int
    login_rate_limit: tuple[int, int]
    register_rate_limit: tuple[int, int]
    cors_origins: tuple[str, ...]
    log_level: str


def _parse_rate(value: str | None, default: tuple[int, int]) -> tuple[int, int]:
    """Parse ``"<hits>/<seconds>"``; anything malformed yields the default."""
    if not value:
        return default
    try:
        hits, window = value.split("/", 1)
        parsed = (int(hits), int(window))
    except ValueError:
        return default
    if parsed[0] <= 0 or parsed[1] <= 0:
        return default
    return parsed


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    origins = tuple(
        origin.strip().rstrip("/")
        for origin in (os.getenv("CORS_ORIGINS") or "").split(",")
        if origin.strip()
    )
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./farwell.db"),
        storage_root=os.getenv("STORAGE_ROOT", os.path.join(".", "storage", "app")),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        access_token_ttl_seconds=_int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "86400"), 86400),
        expose_activation_token=_bool(os.getenv("EXPOSE_ACTIVATION_TOKEN"), True),
        cache_backend=(os.getenv("CACHE_BACKEND") or "memory").strip().lower(),
        redis_url=os.getenv("REDIS_URL", ""),
        employee_cache_ttl_seconds=_int(os.getenv("EMPLOYEE_CACHE_TTL_SECONDS", "600"), 600),
        max_upload_kb=_int(os.getenv("MAX_UPLOAD_KB", "2048"), 2048),
        login_rate_limit=_parse_rate(os.getenv("LOGIN_RATE_LIMIT"), (10, 60)),
        register_rate_limit=_parse_rate(os.getenv("REGISTER_RATE_LIMIT"), (5, 300)),
        cors_origins=origins,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
