from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Application
    app_name: str = "Short URL Service"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: List[str] = ["*"]

    # Database
    database_url: str = "sqlite:///./shorturl.db"

    # Public URL of the service. Empty means "derive from the incoming request".
    base_url: str = ""
    # Referrers containing this domain count as direct visits
    own_domain: str = "xsong.us"

    # Short code generation
    short_code_strategy: str = "url_length_hex"
    max_code_retries: int = 10

    # Reporting timezone (UTC+8)
    display_utc_offset_hours: int = 8

    # Geo lookup (ip-api.com, no key required)
    geo_api_url: str = (
        "http://ip-api.com/json/{ip}"
        "?fields=status,country,regionName,city,isp,countryCode&lang=zh-CN"
    )
    geo_timeout: float = 2.0

    # Link preview scraping for social media crawlers
    preview_timeout: float = 3.0
    preview_max_bytes: int = 1024 * 1024

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
