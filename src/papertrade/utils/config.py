"""Application initialization and environment validation."""

from pathlib import Path

from ..config.logging import get_logger, setup_logging
from ..config.settings import (
    get_required_env_vars,
    get_settings,
    validate_required_settings,
)
from ..exceptions import ConfigurationError


def ensure_data_directory() -> None:
    """Ensure the data directory and database tables exist."""
    logger = get_logger(__name__)

    settings = get_settings()
    data_path = Path(settings.data_directory)
    data_path.mkdir(parents=True, exist_ok=True)
    logger.info("Ensured data directory exists", path=str(data_path))

    from ..ormdb.database import create_tables

    create_tables()
    logger.info("Ensured database tables exist")


def initialize_logging() -> None:
    """Configure logging from settings."""
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        format_type=settings.log_format,
        file_enabled=settings.log_file_enabled,
        file_path=settings.log_file_path,
        max_file_size=settings.log_max_file_size,
        backup_count=settings.log_backup_count,
    )


def initialize_application() -> None:
    """Initialize data directory and database after logging is configured."""
    settings = get_settings()
    ensure_data_directory()

    get_logger(__name__).info(
        "Application initialized successfully",
        environment=settings.environment,
        debug=settings.debug,
        data_dir=settings.data_directory,
    )


def validate_environment() -> bool:
    """
    Validate that all required configuration is present.

    Returns:
        True if all required settings are set, False otherwise
    """
    try:
        validate_required_settings()
    except ConfigurationError as e:
        get_logger(__name__).error(
            "Missing required configuration",
            missing=e.details.get("setting"),
            required=get_required_env_vars(),
        )
        return False
    return True
