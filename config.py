"""
Environment configuration for the matching service.

Authorization, profile lifecycle and pitch-deck uploads for the founder/investor
matching app running inside the host platform.
"""

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("tup-matching")

DEFAULT_ALLOWED_UPLOAD_TYPES = [
    "application/pdf",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT DETECTION
    # ==========================================================================
    ENVIRONMENT: str = "local"  # 'local', 'development', 'test', 'production'
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    SERVICE_NAME: str = "tup-matching"

    # ==========================================================================
    # HOST PLATFORM
    # Verifies user tokens and adjudicates experience access
    # ==========================================================================
    HOST_PLATFORM_API_KEY: str
    HOST_PLATFORM_API_URL: str = "https://api.whop.com/api/v5"
    USER_TOKEN_HEADER: str = "x-whop-user-token"
    REQUEST_DEADLINE_MS: int = Field(default=5000, gt=0)

    # ==========================================================================
    # PERSISTENCE
    # sqlite:///path/to/file.db for local/test, Supabase project URL otherwise
    # ==========================================================================
    DATABASE_URL: str
    DATABASE_SERVICE_KEY: str | None = None  # Supabase service role key

    # ==========================================================================
    # BLOB STORE (pitch decks)
    # ==========================================================================
    BLOB_STORE_CREDENTIALS: str
    STORAGE_PROVIDER: str = "supabase"  # 'supabase' or 'local'
    BLOB_STORE_URL: str | None = None  # Falls back to DATABASE_URL for Supabase
    BLOB_STORE_BUCKET: str = "pitch-decks"
    LOCAL_STORAGE_PATH: str = "data/storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000"  # Base for /files URLs from the local provider
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)
    ALLOWED_UPLOAD_TYPES: set[str] = Field(
        default_factory=lambda: set(DEFAULT_ALLOWED_UPLOAD_TYPES)
    )
    UPLOAD_MIN_BYTES_PER_SECOND: int = Field(default=256 * 1024, gt=0)

    # ==========================================================================
    # CORS CONFIGURATION
    # ==========================================================================
    CORS_ORIGINS: str = ""  # Comma-separated list of allowed origins

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"

    @property
    def request_deadline_seconds(self) -> float:
        return self.REQUEST_DEADLINE_MS / 1000

    @property
    def database_backend(self) -> str:
        """Backend name derived from the DATABASE_URL scheme."""
        if self.DATABASE_URL.startswith("sqlite:"):
            return "sqlite"
        return "supabase"

    @property
    def sqlite_path(self) -> str | None:
        """Filesystem path for sqlite:/// URLs."""
        if not self.DATABASE_URL.startswith("sqlite:"):
            return None
        return self.DATABASE_URL.split(":///", 1)[-1]

    @property
    def blob_store_url(self) -> str | None:
        """Storage endpoint, defaulting to the Supabase project used for the database."""
        if self.BLOB_STORE_URL:
            return self.BLOB_STORE_URL
        if self.database_backend == "supabase":
            return self.DATABASE_URL
        return None

    @property
    def max_upload_label(self) -> str:
        """Human-readable upload cap, e.g. '10MB'."""
        megabytes = self.MAX_UPLOAD_BYTES / (1024 * 1024)
        if megabytes.is_integer():
            return f"{int(megabytes)}MB"
        return f"{megabytes:.1f}MB"

    @property
    def allowed_origins(self) -> list[str]:
        """Get allowed CORS origins based on environment."""
        if self.is_local:
            return [
                "http://localhost:3000",
                "http://localhost:8000",
                "http://127.0.0.1:3000",
                "http://127.0.0.1:8000",
            ]

        if not self.CORS_ORIGINS:
            return []

        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def log_config(self) -> None:
        """Log configuration on startup."""
        logger.info(f"[CONFIG] Environment: {self.ENVIRONMENT} (production: {self.is_production})")
        logger.info(f"[CONFIG] Host: {self.HOST}:{self.PORT}")
        logger.info(f"[CONFIG] Host platform: {self.HOST_PLATFORM_API_URL} (token header: {self.USER_TOKEN_HEADER})")
        logger.info(f"[CONFIG] Database backend: {self.database_backend}")
        logger.info(f"[CONFIG] Storage provider: {self.STORAGE_PROVIDER} (bucket: {self.BLOB_STORE_BUCKET})")
        logger.info(
            f"[CONFIG] Upload limits: {self.max_upload_label}, "
            f"types: {', '.join(sorted(self.ALLOWED_UPLOAD_TYPES))}"
        )

        if self.database_backend == "supabase" and not self.DATABASE_SERVICE_KEY:
            logger.warning("[CONFIG] WARNING: DATABASE_SERVICE_KEY not set for Supabase backend.")
            logger.warning("[CONFIG] Profile reads and writes will fail.")

        if self.STORAGE_PROVIDER == "supabase" and not self.blob_store_url:
            logger.warning("[CONFIG] WARNING: BLOB_STORE_URL not set for Supabase storage.")
            logger.warning("[CONFIG] Pitch deck uploads will fail.")

        origins_str = ", ".join(self.allowed_origins) if self.allowed_origins else "(none)"
        logger.info(f"[CONFIG] CORS allowed origins: {origins_str}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ==========================================================================
# LOGGING HELPERS
# ==========================================================================

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Configure root logger
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMAT,
)

# Quiet down noisy third-party loggers
for _logger_name in [
    "httpx", "httpcore", "httpcore.http2", "httpcore.connection",
    "hpack", "hpack.hpack", "hpack.table",
]:
    logging.getLogger(_logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance."""
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    return log
