"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.03.00"

    # Database
    DATABASE_URL: str

    # Staff session token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # Phone scan sessions (QR code flow)
    SCAN_SESSION_SECRET: str = ""  # Falls back to JWT_SECRET if empty
    SCAN_TOKEN_EXPIRY_MINUTES: int = 15
    SCAN_SESSION_EXPIRY_MINUTES: int = 15

    # Public base URL used to build scan links
    APP_URL: str = "http://localhost:3001"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Vision extraction (connect card photos)
    ANTHROPIC_API_KEY: str = ""
    VISION_MODEL: str = "claude-sonnet-4-5-20250929"
    VISION_TIMEOUT_SECONDS: float = 60.0
    VISION_MAX_TOKENS: int = 1024

    # Card image storage
    S3_BUCKET: str = "connect-card-images"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str = ""
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # Prayer triage keyword taxonomy (JSON file, optional)
    PRAYER_TAXONOMY_PATH: str = ""

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
    def scan_session_secret(self) -> str:
        """Signing key for scan session cookies."""
        return self.SCAN_SESSION_SECRET or self.JWT_SECRET

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies everywhere except local dev and tests."""
        return self.ENV not in ("dev", "test")


settings = Settings()
