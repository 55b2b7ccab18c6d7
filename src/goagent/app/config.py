"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env from the project root regardless of CWD
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./goagent.db"

    # AI
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"

    # Auth / JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 1440
    password_reset_expiry_minutes: int = 60

    # Shared-secret ADMIN elevation at signup. Empty disables elevation.
    # Placeholder only: replace with an invite/approval flow before production.
    admin_ops_code: str = ""

    # Outbound mail
    sendgrid_api_key: str = ""
    mail_from: str = "noreply@estatego.app"

    # CORS / Frontend
    cors_origins: str = "http://localhost:3000"
    frontend_url: str = "http://localhost:3000"

    # General
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] to allow any origin.
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_store_configured(self) -> bool:
        """True when a database URL is present."""
        return bool(self.database_url.strip())

    @property
    def is_oracle_configured(self) -> bool:
        """True when a Gemini API key is present."""
        return bool(self.gemini_api_key.strip())


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
