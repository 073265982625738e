"""
Replenishment Console Configuration

Uses pydantic-settings for type-safe environment variable loading.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

DEFAULT_API_BASE_URL = "http://localhost:8080/api"
DEFAULT_FORECAST_HORIZON_DAYS = 30

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Replenishment Console"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # Backend API
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: str = ""
    request_timeout_seconds: float = 60.0

    # ── Replenishment workflow ───────────────────────────────────────
    forecast_horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS
    operator_id: int | None = None
    workflow_notes: str = "Orders generated from guided workflow"
    dashboard_notes: str = "Automatic processing from dashboard"
    in_process_notes: str = "Marked from dashboard"

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_security_guardrails(settings)
    return settings


def is_local_env(settings: Settings) -> bool:
    env = settings.app_env.strip().lower()
    return env in {"", "local", "dev", "development", "test"}


def _enforce_security_guardrails(settings: Settings) -> None:
    if settings.forecast_horizon_days <= 0:
        raise ValueError("forecast_horizon_days must be a positive number of days")

    if is_local_env(settings):
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
    if not settings.api_token:
        raise ValueError("Refusing to start without an API token outside local/dev/test")
    if not settings.api_base_url.startswith("https://"):
        raise ValueError("Refusing to talk to a non-https API outside local/dev/test")
