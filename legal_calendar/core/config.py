"""
Configuration helpers for the Legal Calendar backend.

Routers/services never read os.environ directly; they receive a Settings
instance built from the environment by get_settings().
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    storage_backend: str
    database_url: str
    data_dir: Path
    db_connect_attempts: int
    db_connect_retry_seconds: float
    admin_session_ttl_seconds: int
    default_admin_username: str
    default_admin_password: str
    cors_origins: tuple[str, ...]
    log_level: str

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _float(value: str, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    database_url = (os.getenv("DATABASE_URL") or "").strip()
    backend = (os.getenv("STORAGE_BACKEND") or "").strip().lower()
    if backend not in {"sql", "json"}:
        backend = "sql" if database_url else "json"
    origins = tuple(o.strip().rstrip("/") for o in (os.getenv("CORS_ORIGINS") or "").split(",") if o.strip())

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        storage_backend=backend,
        database_url=database_url,
        data_dir=Path(os.getenv("DATA_DIR") or DEFAULT_DATA_DIR),
        db_connect_attempts=max(1, _int(os.getenv("DB_CONNECT_ATTEMPTS", "3"), 3)),
        db_connect_retry_seconds=max(0.0, _float(os.getenv("DB_CONNECT_RETRY_SECONDS", "1.5"), 1.5)),
        admin_session_ttl_seconds=max(600, _int(os.getenv("ADMIN_SESSION_TTL_SECONDS", "43200"), 43200)),
        default_admin_username=(os.getenv("DEFAULT_ADMIN_USERNAME") or "admin").strip(),
        default_admin_password=os.getenv("DEFAULT_ADMIN_PASSWORD", "htic2025"),
        cors_origins=origins,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
