"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    LOG_LEVEL: str = "INFO"

    # Database (embedded SQLite by default, PostgreSQL supported)
    DATABASE_URL: str = "sqlite:///./aidtrack.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 12

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 120
    REDIS_URL: str = ""

    # Antivirus (clamd over TCP)
    ANTIVIRUS_SCAN_ENABLED: bool = False
    CLAMAV_HOST: str = "localhost"
    CLAMAV_PORT: int = 3310
    CLAMAV_TIMEOUT_SECONDS: float = 10.0
    # None = derive from ENV (fail open only in dev)
    ANTIVIRUS_FAIL_OPEN: bool | None = None

    # Object storage
    STORAGE_BACKEND: str = "local"  # local | s3
    LOCAL_STORAGE_PATH: str = "/tmp/aidtrack-documents"
    OBJECT_STORAGE_BUCKET: str = ""
    OBJECT_STORAGE_REGION: str = "eu-west-1"
    OBJECT_STORAGE_ENDPOINT: str = ""
    OBJECT_STORAGE_FORCE_PATH_STYLE: bool = False
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    SIGNED_URL_EXPIRY_SECONDS: int = 300  # 5 minutes

    # Documents
    MAX_DOCUMENT_BYTES: int = 5 * 1024 * 1024  # 5 MB

    # Aids
    AID_DEDUP_WINDOW_SECONDS: int = 10

    # Audit trail retention (rows per organization)
    AUDIT_LOG_MAX_ENTRIES: int = 500

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
    def antivirus_fail_open(self) -> bool:
        """Scanner outages are tolerated in dev only, unless configured explicitly."""
        if self.ANTIVIRUS_FAIL_OPEN is not None:
            return self.ANTIVIRUS_FAIL_OPEN
        return self.ENV == "dev"


settings = Settings()
