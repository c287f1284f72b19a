"""
Configuration management for the Kitchen Ledger costing engine.

This module handles:
- Database path and URL configuration
- Environment-specific configuration (development vs. production)
- Recipe traversal ceilings for the costing engine
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DEFAULT_MAX_RECIPE_DEPTH,
    DEFAULT_MAX_RECIPE_EXPANSIONS,
    ENV_VAR_DATABASE_URL,
    ENV_VAR_ENVIRONMENT,
    ENV_VAR_MAX_RECIPE_DEPTH,
    ENV_VAR_MAX_RECIPE_EXPANSIONS,
)

logger = logging.getLogger(__name__)


def _read_positive_int(env_var: str, default: int) -> int:
    """
    Read a positive integer setting from the environment.

    Args:
        env_var: Environment variable name
        default: Value used when the variable is unset or invalid

    Returns:
        Parsed value, or default
    """
    raw = os.environ.get(env_var)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {env_var}={raw!r}: not an integer, using {default}")
        return default

    if value < 1:
        logger.warning(f"Ignoring {env_var}={raw!r}: must be >= 1, using {default}")
        return default

    return value


class Config:
    """
    Application configuration manager.

    Handles database location and the costing engine's resource limits.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_VAR_DATABASE_URL) or None

        self._max_recipe_depth = _read_positive_int(
            ENV_VAR_MAX_RECIPE_DEPTH, DEFAULT_MAX_RECIPE_DEPTH
        )
        self._max_recipe_expansions = _read_positive_int(
            ENV_VAR_MAX_RECIPE_EXPANSIONS, DEFAULT_MAX_RECIPE_EXPANSIONS
        )

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.kitchen_ledger
        """
        return Path.home() / ".kitchen_ledger"

    def ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        KITCHEN_LEDGER_DATABASE_URL wins over the file-based default.

        Returns:
            Database URL string for SQLAlchemy
        """
        if self._database_url_override:
            return self._database_url_override

        # Use forward slashes for SQLite URL
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def max_recipe_depth(self) -> int:
        """Deepest sub-recipe chain a cost request may walk."""
        return self._max_recipe_depth

    @property
    def max_recipe_expansions(self) -> int:
        """Recipe expansions allowed per top-level recipe in a cost request."""
        return self._max_recipe_expansions

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(environment='{self.environment}', "
            f"database_url='{self.database_url}', "
            f"max_recipe_depth={self._max_recipe_depth}, "
            f"max_recipe_expansions={self._max_recipe_expansions})"
        )


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument - this prevents accidental database
    switching mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    KITCHEN_LEDGER_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None
