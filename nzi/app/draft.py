"""
Staged config draft.

A ConfigDraft owns a deep copy of the live Config; nothing done to the
draft can reach the live config until the controller applies it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from nzi.config.model import (
    City,
    Config,
    default_cities,
    default_config,
    default_currency,
    default_display,
    default_map,
)


class Section(str, Enum):
    """Editable config sections, in editor tab order."""

    CITIES = "cities"
    CURRENCY = "currency"
    MAP = "map"
    ADVANCED = "advanced"

    def next(self) -> "Section":
        members = list(Section)
        return members[(members.index(self) + 1) % len(members)]


def _clean_flags() -> Dict[Section, bool]:
    return {section: False for section in Section}


@dataclass
class ConfigDraft:
    """Working copy of the config plus per-section dirty flags."""

    config: Config
    dirty: Dict[Section, bool] = field(default_factory=_clean_flags)

    @classmethod
    def from_config(cls, live: Config) -> "ConfigDraft":
        return cls(config=live.model_copy(deep=True))

    @property
    def is_dirty(self) -> bool:
        return any(self.dirty.values())

    def dirty_sections(self) -> List[Section]:
        return [section for section, flag in self.dirty.items() if flag]

    def mark(self, section: Section) -> None:
        self.dirty[section] = True

    # Resets

    def reset_section(self, section: Section) -> None:
        """Revert one section to built-in defaults; other sections are untouched."""
        if section is Section.CITIES:
            current, home, tracked = default_cities()
            self.config.current_city = current
            self.config.home_city = home
            self.config.tracked_cities = tracked
        elif section is Section.CURRENCY:
            self.config.currency = default_currency()
        elif section is Section.MAP:
            self.config.map = default_map()
        elif section is Section.ADVANCED:
            self.config.display = default_display()
        # Still differs from the live config until applied
        self.mark(section)

    def reset_all(self) -> None:
        self.config = default_config()
        self.dirty = _clean_flags()

    # City edits

    def _tracked_index(self, code: str) -> int:
        for i, city in enumerate(self.config.tracked_cities):
            if city.same_code(code):
                return i
        raise ValueError(f"No tracked city with code {code}")

    def add_tracked_city(self, city: City) -> None:
        self.config.tracked_cities.append(city.model_copy(deep=True))
        self.mark(Section.CITIES)

    def remove_tracked_city(self, code: str) -> City:
        removed = self.config.tracked_cities.pop(self._tracked_index(code))
        self.mark(Section.CITIES)
        return removed

    def update_tracked_city(self, code: str, **changes) -> City:
        """Replace fields of a tracked city; unknown field names raise ValueError."""
        unknown = set(changes) - set(City.model_fields)
        if unknown:
            raise ValueError(f"Unknown city field(s): {', '.join(sorted(unknown))}")
        idx = self._tracked_index(code)
        data = self.config.tracked_cities[idx].model_dump()
        data.update(changes)
        updated = City.model_validate(data)
        self.config.tracked_cities[idx] = updated
        self.mark(Section.CITIES)
        return updated

    def move_tracked_city(self, code: str, offset: int) -> None:
        """Move a tracked city up (negative) or down (positive) in display order."""
        idx = self._tracked_index(code)
        tracked = self.config.tracked_cities
        target = max(0, min(len(tracked) - 1, idx + offset))
        if target != idx:
            tracked.insert(target, tracked.pop(idx))
            self.mark(Section.CITIES)

    def set_home_from_tracked(self, code: str) -> City:
        """Promote a tracked city to home; the old home takes its tracked slot."""
        idx = self._tracked_index(code)
        tracked = self.config.tracked_cities
        new_home = tracked[idx]
        tracked[idx] = self.config.home_city
        self.config.home_city = new_home
        self.mark(Section.CITIES)
        return new_home

    def set_current_from_tracked(self, code: str) -> City:
        """Promote a tracked city to current; the old current takes its tracked slot."""
        idx = self._tracked_index(code)
        tracked = self.config.tracked_cities
        new_current = tracked[idx]
        tracked[idx] = self.config.current_city
        self.config.current_city = new_current
        self.mark(Section.CITIES)
        return new_current

    # Currency edits

    def toggle_currency_sync(self) -> bool:
        """Flip between city-synced and manual pair. Returns the new sync flag."""
        currency = self.config.currency
        if currency.sync_with_cities and not (currency.base and currency.quote):
            # Seed the manual pair with what is on screen now
            currency.base, currency.quote = self.config.currency_pair()
        currency.sync_with_cities = not currency.sync_with_cities
        self.mark(Section.CURRENCY)
        return currency.sync_with_cities

    def set_manual_pair(self, base: str, quote: str) -> None:
        currency = self.config.currency
        currency.base = base.strip().upper()
        currency.quote = quote.strip().upper()
        currency.sync_with_cities = False
        self.mark(Section.CURRENCY)

    def set_amount(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("Amount must not be negative")
        self.config.currency.amount = amount
        self.mark(Section.CURRENCY)

    # Map edits

    def set_map_focus(self, code: Optional[str]) -> None:
        self.config.map.focus_code = code.strip().upper() if code else None
        self.mark(Section.MAP)

    def toggle_map_labels(self) -> bool:
        self.config.map.show_labels = not self.config.map.show_labels
        self.mark(Section.MAP)
        return self.config.map.show_labels

    # Advanced edits

    def set_display(self, **changes) -> None:
        """Change display settings; values are type-checked, bad ones raise ValueError."""
        unknown = set(changes) - set(type(self.config.display).model_fields)
        if unknown:
            raise ValueError(f"Unknown display setting(s): {', '.join(sorted(unknown))}")
        data = self.config.display.model_dump()
        data.update(changes)
        self.config.display = type(self.config.display).model_validate(data)
        self.mark(Section.ADVANCED)
