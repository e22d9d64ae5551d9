"""
Staged draft controller.

The controller is the only writer of the live Config. Edits go to a
ConfigDraft; apply() validates the draft, saves it and only then swaps it
in and notifies listeners. Escape discards the draft without touching the
live config or the file on disk.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from nzi.app.draft import ConfigDraft, Section
from nzi.config.model import City, Config
from nzi.config.store import ConfigStore, LoadResult
from nzi.config.validation import ConfigError, collect_errors
from nzi.errors import ConfigIOError

logger = logging.getLogger(__name__)

ConfigListener = Callable[[Config], None]


class Mode(str, Enum):
    NORMAL = "normal"
    CONFIG_EDITING = "config_editing"


@dataclass(frozen=True)
class ApplyOutcome:
    """Result of applying a draft."""

    ok: bool
    errors: List[ConfigError] = field(default_factory=list)
    io_error: Optional[str] = None

    def summary(self) -> str:
        if self.ok:
            return "Config saved"
        if self.io_error:
            return f"Save failed: {self.io_error}"
        return f"Config has {len(self.errors)} error(s)"


class NoDraftError(RuntimeError):
    """An edit operation was attempted outside config editing."""


class DraftController:
    """Mode state machine owning the live config and at most one draft."""

    def __init__(self, store: ConfigStore, live: Config):
        self.store = store
        self._live = live
        self.draft: Optional[ConfigDraft] = None
        self.active_section = Section.CITIES
        self.errors: List[ConfigError] = []
        self.show_help = False
        self._listeners: List[ConfigListener] = []

    @property
    def live(self) -> Config:
        return self._live

    @property
    def mode(self) -> Mode:
        return Mode.CONFIG_EDITING if self.draft is not None else Mode.NORMAL

    @property
    def is_editing(self) -> bool:
        return self.draft is not None

    def subscribe(self, listener: ConfigListener) -> None:
        """Register a callback run with the new live config after it changes."""
        self._listeners.append(listener)

    def _replace_live(self, config: Config) -> None:
        self._live = config
        for listener in self._listeners:
            listener(config)

    def toggle_help(self) -> bool:
        self.show_help = not self.show_help
        return self.show_help

    # Mode transitions

    def begin_edit(self) -> ConfigDraft:
        """Enter config editing with a fresh draft. Re-entering keeps the open draft."""
        if self.draft is None:
            self.draft = ConfigDraft.from_config(self._live)
            self.active_section = Section.CITIES
            self.errors = []
            logger.debug("Config draft opened")
        return self.draft

    def discard(self) -> None:
        """Drop the draft; the live config and the file are untouched."""
        if self.draft is not None:
            logger.debug(f"Config draft discarded (dirty: {[s.value for s in self.draft.dirty_sections()]})")
        self.draft = None
        self.errors = []

    def apply(self) -> ApplyOutcome:
        """
        Validate, save and swap in the draft.

        On validation errors or a failed save the draft stays open and the
        live config is unchanged.
        """
        draft = self._require_draft()
        errors = collect_errors(draft.config)
        if errors:
            self.errors = errors
            logger.info(f"Config draft rejected with {len(errors)} error(s)")
            return ApplyOutcome(ok=False, errors=errors)

        candidate = draft.config.model_copy(deep=True)
        try:
            self.store.save(candidate)
        except ConfigIOError as e:
            logger.error(f"Failed to save config: {e}")
            self.errors = []
            return ApplyOutcome(ok=False, io_error=str(e))

        self.draft = None
        self.errors = []
        logger.info(f"Config applied and saved to {self.store.path}")
        self._replace_live(candidate)
        return ApplyOutcome(ok=True)

    def reload(self) -> LoadResult:
        """
        Re-read the file from disk, discarding any open draft.

        A file that cannot be used leaves the running config in place.
        """
        self.discard()
        result = self.store.load()
        if result.source == "fallback":
            logger.warning("Reload kept the running config; file on disk is unusable")
            return result
        self._replace_live(result.config)
        return result

    def reset_to_defaults(self) -> ApplyOutcome:
        """Replace the live config with built-in defaults and save it."""
        self.discard()
        self.begin_edit().reset_all()
        outcome = self.apply()
        if not outcome.ok:
            self.discard()
        return outcome

    # Draft edits

    def _require_draft(self) -> ConfigDraft:
        if self.draft is None:
            raise NoDraftError("Not editing config; run /config first")
        return self.draft

    def set_active_section(self, section: Section) -> None:
        self._require_draft()
        self.active_section = section

    def next_section(self) -> Section:
        self._require_draft()
        self.active_section = self.active_section.next()
        return self.active_section

    def reset_active_section(self) -> None:
        self._require_draft().reset_section(self.active_section)

    def reset_all(self) -> None:
        self._require_draft().reset_all()
        self.errors = []

    def add_tracked_city(self, city: City) -> None:
        self._require_draft().add_tracked_city(city)

    def remove_tracked_city(self, code: str) -> City:
        return self._require_draft().remove_tracked_city(code)

    def update_tracked_city(self, code: str, **changes) -> City:
        return self._require_draft().update_tracked_city(code, **changes)

    def move_tracked_city(self, code: str, offset: int) -> None:
        self._require_draft().move_tracked_city(code, offset)

    def set_home_from_tracked(self, code: str) -> City:
        return self._require_draft().set_home_from_tracked(code)

    def set_current_from_tracked(self, code: str) -> City:
        return self._require_draft().set_current_from_tracked(code)

    def toggle_currency_sync(self) -> bool:
        return self._require_draft().toggle_currency_sync()

    def set_manual_pair(self, base: str, quote: str) -> None:
        self._require_draft().set_manual_pair(base, quote)

    def set_amount(self, amount: float) -> None:
        self._require_draft().set_amount(amount)

    def set_map_focus(self, code: Optional[str]) -> None:
        self._require_draft().set_map_focus(code)

    def toggle_map_labels(self) -> bool:
        return self._require_draft().toggle_map_labels()

    def set_display(self, **changes) -> None:
        self._require_draft().set_display(**changes)
