"""
Configuration loader for the Roadmap Consequence Engine.

Loads settings from roadmap_config.yaml and provides typed access
to all configuration sections.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional
from functools import lru_cache

import yaml


# Default config ships inside the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "roadmap_config.yaml"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class RoadmapConfig:
    """
    Configuration manager for the consequence engine.

    Loads YAML configuration and provides typed access to all sections.
    Use get_config() to obtain the singleton instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        get_config.cache_clear()

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Scheduling
    # =========================================================================

    @property
    def scheduling(self) -> dict:
        """Scheduling configuration."""
        return self._config.get("scheduling", {})

    @property
    def exclude_cancelled(self) -> bool:
        """Whether Cancelled initiatives are dropped before analysis."""
        return self.scheduling.get("exclude_cancelled", True)

    # =========================================================================
    # Resources
    # =========================================================================

    @property
    def resources(self) -> dict:
        """Resource allocation configuration."""
        return self._config.get("resources", {})

    @property
    def default_period_type(self) -> str:
        """Period granularity used when a context does not name one."""
        value = self.resources.get("default_period_type", "Month")
        if value not in ("Month", "Quarter", "Year"):
            raise ConfigurationError(f"Unknown period type in config: {value}")
        return value

    @property
    def utilisation_bands(self) -> dict:
        """Utilisation thresholds in percent."""
        return self.resources.get("utilisation_bands", {
            "normal_max": 70,
            "over_threshold": 90,
        })

    def get_utilisation_status(self, utilisation: float) -> str:
        """
        Classify a utilisation percentage.

        Args:
            utilisation: demand / capacity * 100

        Returns:
            One of 'none', 'normal', 'high', 'over_threshold', 'over_capacity'
        """
        bands = self.utilisation_bands
        if utilisation == 0:
            return "none"
        if utilisation <= bands.get("normal_max", 70):
            return "normal"
        if utilisation <= bands.get("over_threshold", 90):
            return "high"
        if utilisation <= 100:
            return "over_threshold"
        return "over_capacity"

    # =========================================================================
    # Reporting
    # =========================================================================

    @property
    def reporting(self) -> dict:
        """Report formatting configuration."""
        return self._config.get("reporting", {})

    @property
    def date_format(self) -> str:
        """strftime pattern for dates in messages; '{day}' is the unpadded day."""
        return self.reporting.get("date_format", "{day} %b %Y")

    def format_date(self, value: date) -> str:
        """Format a date for display (e.g., '31 Mar 2025')."""
        return value.strftime(self.date_format.replace("{day}", str(value.day)))

    # =========================================================================
    # Logging
    # =========================================================================

    @property
    def logging_level(self) -> str:
        """Root log level name."""
        return self._config.get("logging", {}).get("level", "INFO")

    # =========================================================================
    # Raw Access
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level config value by key."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to config."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config."""
        return key in self._config


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> RoadmapConfig:
    """
    Get the singleton configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.

    Returns:
        RoadmapConfig singleton instance
    """
    path = Path(config_path) if config_path else None
    return RoadmapConfig(path)


def reload_config() -> RoadmapConfig:
    """Reload configuration from disk and return new instance."""
    get_config.cache_clear()
    return get_config()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for embedding applications."""
    logging.basicConfig(
        level=level or get_config().logging_level,
        format=LOG_FORMAT
    )
