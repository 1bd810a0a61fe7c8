"""Application settings and configuration management using Pydantic."""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url

from ..exceptions import ConfigurationError


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Environment and deployment
    environment: str = "development"
    debug: bool = False

    # Relational backend
    backend_url: Optional[str] = None
    backend_access_key: Optional[str] = None
    data_directory: str = "data"
    database_echo_sql: bool = False
    database_pool_pre_ping: bool = True
    database_pool_recycle: int = 3600

    # Market data provider
    marketstack_api_key: Optional[str] = None
    marketstack_base_url: str = "http://api.marketstack.com/v1"
    quote_cache_ttl_minutes: int = 60
    quote_request_timeout_seconds: float = 10.0
    quote_fetch_retries: int = 2

    # Simulation
    starting_cash_balance: Decimal = Decimal("1000000.00")
    default_portfolio_name: str = "Main Portfolio"
    usd_to_hkd: Decimal = Decimal("7.75")
    hkd_to_cny: Decimal = Decimal("0.89")

    # API settings
    endpoint_host: str = "0.0.0.0"
    endpoint_port: int = 8000
    endpoint_auth_token: Optional[str] = None
    api_reload: bool = False
    api_log_level: str = "INFO"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "structured"  # 'structured' or 'plain'
    log_file_enabled: bool = False
    log_file_path: str = "data/papertrade.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_environments = ["development", "testing", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("quote_cache_ttl_minutes")
    @classmethod
    def validate_cache_ttl(cls, v):
        """Validate quote freshness window is reasonable."""
        if v < 1 or v > 1440:  # 1 minute to 24 hours
            raise ValueError("Quote cache TTL must be between 1 and 1440 minutes")
        return v

    @field_validator("quote_fetch_retries")
    @classmethod
    def validate_retries(cls, v):
        """Validate bounded retry count."""
        if v < 0 or v > 5:
            raise ValueError("Quote fetch retries must be between 0 and 5")
        return v

    @field_validator(
        "quote_request_timeout_seconds", "starting_cash_balance", "usd_to_hkd", "hkd_to_cny"
    )
    @classmethod
    def validate_positive(cls, v):
        """Validate numeric options that must be strictly positive."""
        if v <= 0:
            raise ValueError("Value must be greater than 0")
        return v

    @field_validator("endpoint_port")
    @classmethod
    def validate_port(cls, v):
        """Validate port number is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("log_level", "api_log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ["structured", "plain"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    def get_database_url(self) -> str:
        """
        Get the complete backend URL.

        The access key is injected as the URL password when the configured
        URL does not already carry one. Without a backend URL a SQLite file
        in the data directory is used.
        """
        if self.backend_url:
            url = make_url(self.backend_url)
            if not (self.backend_access_key and url.username and not url.password):
                return self.backend_url
            url = url.set(password=self.backend_access_key)
            return url.render_as_string(hide_password=False)

        from pathlib import Path

        db_dir = Path(self.data_directory)
        db_dir.mkdir(exist_ok=True)
        db_path = db_dir / "papertrade.db"
        return f"sqlite:///{db_path}"

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


def get_required_env_vars() -> list[str]:
    """
    Get list of required environment variables.

    Returns:
        list: List of required environment variable names
    """
    return [
        "BACKEND_URL",
        "BACKEND_ACCESS_KEY",
        "MARKETSTACK_API_KEY",
    ]


def validate_required_settings(settings: Optional[Settings] = None) -> None:
    """
    Validate that all required settings are configured.

    Raises:
        ConfigurationError: Naming every missing option
    """
    settings = settings or get_settings()

    missing = [
        name
        for name in get_required_env_vars()
        if not getattr(settings, name.lower())
    ]
    if missing:
        raise ConfigurationError(
            ", ".join(missing), "required configuration is missing"
        )
