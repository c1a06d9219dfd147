"""Application configuration loaded from environment variables."""

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import ConfigDict, computed_field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    ENV: str = "dev"
    DEBUG: bool = True

    # Database connection components
    # Defaults are for local development (outside Docker)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 15432
    POSTGRES_USER: str = "devuser"
    POSTGRES_PASSWORD: str = "devpass"
    POSTGRES_DB: str = "soc_reports_dev"

    # Allow DATABASE_URL to be set directly, or construct from components
    DATABASE_URL: str | None = None

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """Get database URL, either from DATABASE_URL env var or construct from components."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode credentials in case they contain special characters
        encoded_password = quote_plus(str(self.POSTGRES_PASSWORD), safe="")
        encoded_user = quote_plus(str(self.POSTGRES_USER), safe="")
        encoded_host = quote_plus(str(self.POSTGRES_HOST), safe="")
        encoded_db = quote_plus(str(self.POSTGRES_DB), safe="")
        return (
            f"postgresql+psycopg2://{encoded_user}:{encoded_password}"
            f"@{encoded_host}:{self.POSTGRES_PORT}/{encoded_db}"
        )

    # Connection pool (ignored for SQLite)
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_CONNECT_TIMEOUT_SECONDS: int = 10

    # Wazuh manager API (agents, rules, alert fallback)
    WAZUH_API_URL: str = "https://localhost:55000"
    WAZUH_API_USER: str = "wazuh-wui"
    WAZUH_API_PASSWORD: str = ""
    WAZUH_VERIFY_SSL: bool = False

    # Wazuh indexer (OpenSearch) for alerts; leave URL empty to use the manager only
    WAZUH_INDEXER_URL: str = ""
    WAZUH_INDEXER_USER: str = "admin"
    WAZUH_INDEXER_PASSWORD: str = "admin"
    WAZUH_INDEXER_VERIFY_SSL: bool = False

    # DFIR-IRIS case manager
    IRIS_API_URL: str = "https://localhost:8443"
    IRIS_API_KEY: str = ""
    IRIS_VERIFY_SSL: bool = False
    IRIS_CUSTOMER_ID: int = 1

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Report engine
    REPORT_DEFAULT_LIMIT: int = 1000
    REPORT_MAX_CONCURRENT_WIDGETS: int = 4
    REPORT_WIDGET_TIMEOUT_SECONDS: float = 30.0
    REPORT_GENERATION_TIMEOUT_SECONDS: float = 120.0
    REPORT_DATE_RANGE_FIELD: str = "timestamp"

    # CORS
    CORS_ORIGINS: str = (
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:3000"
    )

    # Logging
    LOG_LEVEL: str = "INFO"  # INFO for dev, WARNING for prod

    model_config = ConfigDict(
        env_file=[".env", "../.env"],  # Try .env in current dir first, then parent dir
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env that are not in Settings
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
