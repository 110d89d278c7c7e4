from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./portal.db")

    # Sessions
    jwt_secret_key: str = Field(default="change-me")
    jwt_expire_seconds: int = Field(default=86400)

    # Patient identifiers
    identifier_attempts: int = Field(default=10, ge=1)
    registration_retries: int = Field(default=1, ge=0)

    # reCAPTCHA Enterprise (verification is skipped when no API key is set)
    recaptcha_api_url: str = Field(default="https://recaptchaenterprise.googleapis.com")
    recaptcha_project_id: str = Field(default="")
    recaptcha_api_key: str = Field(default="")
    recaptcha_site_key: str = Field(default="")
    recaptcha_score_threshold: float = Field(default=0.5)

    # Logging
    log_level: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
