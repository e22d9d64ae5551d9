"""
Load and save the user's YAML config file.

load() never raises: a missing file yields the built-in defaults (written
out for next time), and an unreadable or invalid file yields the defaults
plus a warning so the dashboard still starts. save() only persists a
config that passes validation and replaces the file atomically.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml
from pydantic import ValidationError

from nzi.config.migrations import (
    DEFAULT_LEGACY_RULES,
    LegacyCityRule,
    MigrationWarning,
    migrate_with_report,
)
from nzi.config.model import Config, default_config
from nzi.config.validation import collect_errors, validate
from nzi.errors import ConfigIOError

logger = logging.getLogger(__name__)

HEADER = "# nzi-cli configuration - edit with /edit or the /config editor\n"


@dataclass
class LoadResult:
    """Outcome of a config load."""

    config: Config
    source: str  # 'file', 'default' (no file yet) or 'fallback' (file unusable)
    warnings: List[str] = field(default_factory=list)
    migration_warnings: List[MigrationWarning] = field(default_factory=list)

    @property
    def migrated(self) -> bool:
        return bool(self.migration_warnings)

    @property
    def used_defaults(self) -> bool:
        return self.source != "file"


class ConfigStore:
    """Reads and writes the config document at a fixed path."""

    def __init__(
        self,
        path: Path,
        rules: Sequence[LegacyCityRule] = DEFAULT_LEGACY_RULES,
    ):
        self.path = Path(path)
        self.rules = tuple(rules)

    def exists(self) -> bool:
        return self.path.exists()

    def read_raw(self) -> Any:
        """Read and parse the YAML document without interpreting it."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigIOError(f"failed to read config file: {e}", self.path) from e
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigIOError(f"failed to parse config file: {e}", self.path) from e

    def load(self) -> LoadResult:
        """
        Load, migrate and validate the config file.

        Returns:
            LoadResult whose config is always usable
        """
        if not self.exists():
            result = LoadResult(config=default_config(), source="default")
            try:
                self.save(result.config)
                logger.info(f"Created default config at {self.path}")
            except ConfigIOError as e:
                result.warnings.append(f"could not write default config: {e}")
                logger.warning(f"Could not write default config: {e}")
            return result

        try:
            raw = self.read_raw()
        except ConfigIOError as e:
            return self._fallback(str(e))

        if not isinstance(raw, dict):
            return self._fallback("config file is not a key/value document")

        doc, migration_warnings = migrate_with_report(raw, self.rules)
        for warning in migration_warnings:
            logger.warning(f"Config migration: {warning}")

        try:
            config = Config.model_validate(doc)
        except ValidationError as e:
            return self._fallback(f"config file has invalid structure: {e.error_count()} problem(s)")

        errors = collect_errors(config)
        if errors:
            details = "; ".join(str(err) for err in errors)
            return self._fallback(f"config file failed validation: {details}")

        result = LoadResult(config=config, source="file", migration_warnings=migration_warnings)
        if migration_warnings:
            try:
                self.save(config)
                logger.info(f"Saved migrated config to {self.path}")
            except ConfigIOError as e:
                result.warnings.append(f"could not save migrated config: {e}")
                logger.warning(f"Could not save migrated config: {e}")
        return result

    def _fallback(self, reason: str) -> LoadResult:
        logger.warning(f"Using built-in defaults: {reason}")
        return LoadResult(
            config=default_config(),
            source="fallback",
            warnings=[f"{reason} - using built-in defaults"],
        )

    def save(self, config: Config) -> None:
        """
        Persist a validated config, replacing the file wholesale.

        Raises:
            ConfigValidationError: if config does not validate (nothing is written)
            ConfigIOError: if the file cannot be written
        """
        validate(config)
        text = HEADER + yaml.safe_dump(config.to_document(), sort_keys=False, allow_unicode=True)
        self._atomic_write(text)

    def _atomic_write(self, text: str) -> None:
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise ConfigIOError(f"failed to write config file: {e}", self.path) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
