"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: major.minor.patch)
    VERSION: str = "0.3.0"

    # Database
    DATABASE_URL: str = "sqlite:///./brokerage_crm.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 8

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute, 0 disables)
    RATE_LIMIT_API: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Sales pipeline phase keys with special handling
    PIPELINE_WON_KEY: str = "fechada_ganha"
    PIPELINE_LOST_KEY: str = "fechada_perdida"
    PIPELINE_SENT_KEY: str = "enviada"

    # Alerts (days)
    ALERT_RENEWAL_WINDOW_DAYS: int = 30
    ALERT_CLAIM_STALE_DAYS: int = 30
    ALERT_BIRTHDAY_WINDOW_DAYS: int = 7
    ALERT_RETENTION_DAYS: int = 90

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"

    @property
    def terminal_phase_keys(self) -> set[str]:
        """Phase keys that close a quote (won/lost)."""
        return {self.PIPELINE_WON_KEY, self.PIPELINE_LOST_KEY}


settings = Settings()
