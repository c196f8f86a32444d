"""Application configuration with environment variables."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment (and `.env` when present)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    VERSION: str = "0.01.00"

    # Database (PostgreSQL in production, SQLite for tests and local tooling)
    DATABASE_URL: str

    # Session tokens. JWT_SECRET_PREVIOUS is only set while rotating.
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""
    JWT_EXPIRES_HOURS: int = 8

    # Comma-separated browser origins allowed to send the session cookie
    CORS_ORIGINS: str = "http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    # Case lifecycle
    AUTO_ARCHIVE_ON_COMPLETE: bool = True
    NOTIFICATIONS_ENABLED: bool = True

    # List endpoints
    DEFAULT_PER_PAGE: int = 20
    MAX_PER_PAGE: int = 100

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Secrets accepted when verifying a token, current one first."""
        return [s for s in (self.JWT_SECRET, self.JWT_SECRET_PREVIOUS) if s]

    @property
    def docs_enabled(self) -> bool:
        return self.ENV == "dev"


settings = Settings()
