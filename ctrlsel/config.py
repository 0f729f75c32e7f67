"""
Configuration for the controller selector.

Settings come from environment variables, optionally loaded from a .env
file. The admin secret has no default: admin operations stay disabled
until one is supplied.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ctrlsel.errors import ConfigurationError


DEFAULT_DB_PATH = "products.db"
DEFAULT_CATALOG_FILE = "data/product_list.xlsx"
SUPPORTED_CATALOG_SUFFIXES = (".xlsx", ".json")

ENV_DB_PATH = "CTRLSEL_DB_PATH"
ENV_CATALOG_FILE = "CTRLSEL_CATALOG_FILE"
ENV_ADMIN_SECRET = "CTRLSEL_ADMIN_SECRET"
ENV_LOG_LEVEL = "CTRLSEL_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """Application settings."""
    db_path: str = DEFAULT_DB_PATH
    catalog_file: Path = Path(DEFAULT_CATALOG_FILE)
    admin_secret: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.catalog_file.suffix.lower() not in SUPPORTED_CATALOG_SUFFIXES:
            raise ConfigurationError(
                f"Unsupported catalog file type '{self.catalog_file.suffix}'. "
                f"Use one of: {', '.join(SUPPORTED_CATALOG_SUFFIXES)}"
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"Unknown log level '{self.log_level}'")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional .env path. If None, python-dotenv searches
            from the working directory upwards.

    Returns:
        Settings: Validated settings.

    Raises:
        ConfigurationError: If a value is invalid.
    """
    load_dotenv(env_file)

    return Settings(
        db_path=os.environ.get(ENV_DB_PATH, DEFAULT_DB_PATH),
        catalog_file=Path(os.environ.get(ENV_CATALOG_FILE, DEFAULT_CATALOG_FILE)),
        admin_secret=os.environ.get(ENV_ADMIN_SECRET) or None,
        log_level=os.environ.get(ENV_LOG_LEVEL, "INFO").upper(),
    )
