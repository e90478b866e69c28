"""Application configuration from environment."""
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Career Simulation Progress"
    debug: bool = False
    log_level: str = "INFO"

    # Database (attempt store)
    database_url: str = "sqlite+aiosqlite:///./simtrack.db"

    secret_key: str = "change-me-in-production-use-env"

    # Session cookie for guest attempts
    session_cookie_name: str = "sim_session_id"
    session_cookie_max_age: int = 60 * 60 * 24 * 30  # 30 days

    # Auth cookie, signed by the external auth flow
    auth_cookie_name: str = "sim_auth"
    auth_token_max_age_seconds: int = 14 * 24 * 3600

    # Progress engine
    progress_cache_prefix: str = "simulation_progress_"
    api_base_url: str = "http://localhost:8000"
    remote_timeout_seconds: float = 10.0
    resync_interval_seconds: float = 60.0
    min_resync_interval_seconds: float = 5.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


# Base path for templates (parent of simtrack/)
BASE_DIR = Path(__file__).resolve().parent.parent
