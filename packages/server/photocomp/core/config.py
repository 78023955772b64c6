"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """PhotoComp server configuration."""

    model_config = SettingsConfigDict(env_prefix="PHOTOCOMP_", env_file=".env", extra="ignore")

    environment: Literal["development", "production"] = "development"

    # Security
    secret_key: str = "CHANGE_ME_IN_PRODUCTION"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    # AWS
    aws_region: str = "us-east-1"
    dynamodb_table: str = "PhotoComp"
    dynamodb_endpoint_url: Optional[str] = None
    s3_bucket: str = "photocomp-photos"
    s3_endpoint_url: Optional[str] = None
    presigned_url_expires_seconds: int = 3600

    # Third-party lookups
    weather_base_url: str = "https://api.open-meteo.com/v1/forecast"
    geocoding_base_url: str = "https://nominatim.openstreetmap.org/search"
    geocoding_user_agent: str = "PhotoComp_App/1.0"
    http_timeout_seconds: float = 10.0

    # Mail (disabled when host or username is empty)
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_username: str = ""
    smtp_password: str = ""
    mail_from: str = "PhotoComp Admin"

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "info"
    log_format: Literal["json", "text"] = "json"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    @property
    def mail_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_username)


@lru_cache
def get_settings() -> Settings:
    return Settings()
