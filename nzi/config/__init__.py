"""Configuration module."""

from nzi.config.cities import CITIES, NZ_MAP_CODES, CatalogCity, get_city
from nzi.config.migrations import (
    DEFAULT_LEGACY_RULES,
    LegacyCityRule,
    MigrationWarning,
    migrate,
    migrate_with_report,
)
from nzi.config.model import (
    City,
    Config,
    CurrencySettings,
    DisplaySettings,
    MapSettings,
    default_config,
)
from nzi.config.settings import Settings, get_settings
from nzi.config.store import ConfigStore, LoadResult
from nzi.config.validation import (
    ConfigError,
    ConfigErrorKind,
    ConfigValidationError,
    collect_errors,
    validate,
)

__all__ = [
    "Settings",
    "get_settings",
    "CatalogCity",
    "CITIES",
    "NZ_MAP_CODES",
    "get_city",
    "City",
    "Config",
    "CurrencySettings",
    "DisplaySettings",
    "MapSettings",
    "default_config",
    "ConfigError",
    "ConfigErrorKind",
    "ConfigValidationError",
    "collect_errors",
    "validate",
    "DEFAULT_LEGACY_RULES",
    "LegacyCityRule",
    "MigrationWarning",
    "migrate",
    "migrate_with_report",
    "ConfigStore",
    "LoadResult",
]
