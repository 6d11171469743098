import logging

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


DEV_SESSION_SECRET = "dev-secret"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    database_url: str = "sqlite+pysqlite:///./heatmap.db"
    environment: str = "development"
    release: str | None = None
    sentry_dsn: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60
    session_secret: str = DEV_SESSION_SECRET
    client_url: str = "http://localhost:5173"
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_callback_url: str = "http://localhost:8000/auth/google/callback"
    heatmap_window_days: int = 365
    log_format: str = "dev"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


def validate_settings(app_settings: Settings) -> None:
    """Fail fast when required secrets are missing outside development.

    Raises:
        RuntimeError: If any required value is absent.
    """

    if app_settings.environment == "development":
        return

    missing = []
    if not app_settings.google_client_id:
        missing.append("GOOGLE_CLIENT_ID")
    if not app_settings.google_client_secret:
        missing.append("GOOGLE_CLIENT_SECRET")
    if app_settings.session_secret == DEV_SESSION_SECRET:
        missing.append("SESSION_SECRET")

    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
