"""Application configuration from environment."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Exam App"
    debug: bool = False
    log_level: str = "INFO"

    # Database (async driver; Alembic converts to a sync one)
    database_url: str = "sqlite+aiosqlite:///./exam_app.db"
    create_tables_on_startup: bool = True

    # Tokens issued by the external identity provider (admin routes only)
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    admin_role: str = "admin"
    access_token_expire_minutes: int = 60 * 8  # 8 hours

    # Autosave cadence advertised to clients
    autosave_interval_seconds: int = 10
    autosave_debounce_ms: int = 800

    # In-progress attempts idle longer than this are marked abandoned by the sweep
    abandon_after_minutes: int = 60 * 24

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "EXAM_APP_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
