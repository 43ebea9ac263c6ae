from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, ValidationError, ValidationInfo, field_validator
from typing import Annotated, List, Optional, Any
import sys
from functools import lru_cache
import structlog

logger = structlog.get_logger()


class Settings(BaseSettings):
    """
    MentWel Auth Service Configuration

    Built once at startup and passed by reference to every component.
    The instance is frozen; derive variants with ``model_copy(update=...)``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        frozen=True,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "MentWel Auth Service"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # API settings
    API_V1_STR: str = "/api/v1"

    # Token settings - SECRET_KEY is REQUIRED, NO DEFAULT
    SECRET_KEY: str = Field(..., min_length=32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=15, ge=1, le=60)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, ge=1, le=30)
    PASSWORD_RESET_EXPIRE_MINUTES: int = Field(default=10, ge=1, le=60)

    # Verification policy
    REQUIRE_EMAIL_VERIFICATION: bool = True
    MINIMUM_AGE: int = Field(default=18, ge=0, le=120)

    # Password policy
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=8, le=128)
    PASSWORD_REQUIRE_UPPERCASE: bool = True
    PASSWORD_REQUIRE_LOWERCASE: bool = True
    PASSWORD_REQUIRE_NUMBERS: bool = True
    PASSWORD_REQUIRE_SPECIAL: bool = False
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=16)

    # Database - REQUIRED
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = Field(default=20, ge=1, le=200)
    DATABASE_MAX_OVERFLOW: int = Field(default=40, ge=0, le=200)
    DATABASE_CREATE_TABLES: bool = True

    # Redis - REQUIRED for refresh token tracking and rate limiting
    REDIS_URL: str
    REDIS_PASSWORD: Optional[str] = None
    REDIS_SSL: bool = False
    REDIS_POOL_SIZE: int = Field(default=50, ge=1, le=100)

    # Email settings - optional; messages are logged when SMTP is not configured
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TLS: bool = True
    EMAILS_FROM_EMAIL: str = "noreply@mentwel.com"
    EMAILS_FROM_NAME: str = "MentWel"

    # Client links embedded in messages and redirects
    CLIENT_URL: str = "http://localhost:3000"
    SERVER_URL: str = "http://localhost:5000"
    DEFAULT_COUNTRY: str = "Nigeria"

    # CORS settings
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    REGISTRATION_RATE_LIMIT_PER_HOUR: int = Field(default=20, ge=1)

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info: ValidationInfo) -> str:
        """Reject obviously weak signing secrets"""
        bad_values = ["your-secret-key", "change-me", "secret", "password", "12345"]
        if any(bad in v.lower() for bad in bad_values):
            raise ValueError(f"{info.field_name} contains weak or default values")
        return v

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> List[str]:
        """Parse CORS origins from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        elif isinstance(v, list):
            return v
        return []

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = ["development", "staging", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of: {valid_envs}")
        return v

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


def validate_required_settings(settings: Settings) -> None:
    """
    Validate cross-field requirements.
    Fail fast if critical settings are missing or invalid.
    """
    errors = []

    if settings.is_production:
        if settings.DEBUG:
            errors.append("DEBUG must be False in production")

        if not settings.BACKEND_CORS_ORIGINS:
            errors.append("BACKEND_CORS_ORIGINS must be explicitly set in production")

        if settings.DATABASE_URL.startswith("sqlite"):
            errors.append("DATABASE_URL cannot use SQLite in production")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise ValueError(error_msg)

    logger.info(
        "Configuration validated successfully",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        require_email_verification=settings.REQUIRE_EMAIL_VERIFICATION,
        smtp_configured=settings.smtp_configured,
        rate_limiting_enabled=settings.RATE_LIMIT_ENABLED,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Fails fast if required environment variables are missing.
    """
    try:
        settings = Settings()
        validate_required_settings(settings)
        return settings
    except ValidationError as e:
        logger.error("Failed to load settings", errors=e.errors())
        print("\nRequired environment variables are missing or invalid:")
        for error in e.errors():
            field = error.get("loc", ["unknown"])[0]
            msg = error.get("msg", "Invalid value")
            print(f"  - {field}: {msg}")
        print("\nPlease check your environment variables and .env file\n")
        sys.exit(1)
