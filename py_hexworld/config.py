"""Settings and logging setup for world generation."""

import logging
import sys

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    # World Generation Configuration
    default_size: int = Field(default=150, description="Default world size (grid is 2*size by size)")
    default_sealevel: int = Field(default=140, description="Default sealevel height (0-255)")
    default_axial_tilt: float = Field(default=23.0, description="Default axial tilt in degrees")
    max_world_size: int = Field(default=2000, description="Max allowed world size")

    class Config:
        env_prefix = "HEXWORLD_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()


def configure_logging(level: str = None, log_format: str = None) -> None:
    """
    Configure structlog over the standard library logger.

    Args:
        level: Log level name; defaults to ``settings.log_level``
        log_format: ``json`` or ``plain``; defaults to ``settings.log_format``
    """
    level = (level or settings.log_level).upper()
    log_format = (log_format or settings.log_format).lower()

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
