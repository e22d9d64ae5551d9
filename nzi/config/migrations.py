"""
Legacy data migrations applied to the raw config document before parsing.

Migrations are pure: they never mutate their input and running them on
already-migrated data is a no-op. City rewrites are resolved to a fixpoint,
so the result does not depend on the order the rules are listed in.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple


CITY_SLOTS = ("current_city", "home_city")


@dataclass(frozen=True)
class MigrationWarning:
    """Non-fatal note about a rewrite applied during load."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class LegacyCityRule:
    """
    Rewrite a legacy city record to its replacement.

    A record matches when its code is in `codes` or its name is in `names`
    (both case-insensitive). Country and currency are preserved.
    """

    codes: Tuple[str, ...]
    name: str
    code: str
    timezone: str
    names: Tuple[str, ...] = field(default_factory=tuple)

    def matches(self, record: Dict[str, Any]) -> bool:
        code = str(record.get("code", "")).strip().upper()
        name = str(record.get("name", "")).strip().lower()
        return code in {c.upper() for c in self.codes} or name in {n.lower() for n in self.names}

    def is_satisfied(self, record: Dict[str, Any]) -> bool:
        return (
            record.get("code") == self.code
            and record.get("name") == self.name
            and record.get("timezone") == self.timezone
        )

    def apply(self, record: Dict[str, Any]) -> Dict[str, Any]:
        updated = dict(record)
        updated["name"] = self.name
        updated["code"] = self.code
        updated["timezone"] = self.timezone
        # Coordinates belonged to the legacy city
        updated.pop("latitude", None)
        updated.pop("longitude", None)
        return updated


# NYC was the home city before the dashboard settled on Boston
DEFAULT_LEGACY_RULES: Tuple[LegacyCityRule, ...] = (
    LegacyCityRule(
        codes=("NYC",),
        names=("New York",),
        name="Boston",
        code="BOS",
        timezone="America/New_York",
    ),
)


def _rewrite_city(
    record: Any, rules: Sequence[LegacyCityRule]
) -> Tuple[Any, Optional[str]]:
    """Apply matching rules until none match. Returns (record, original code or None)."""
    if not isinstance(record, dict):
        return record, None

    original = record.get("code")
    current = record
    changed = False
    for _ in range(len(rules) + 1):
        rule = next((r for r in rules if r.matches(current) and not r.is_satisfied(current)), None)
        if rule is None:
            break
        current = rule.apply(current)
        changed = True

    return current, (str(original) if changed else None)


def _code_key(record: Any) -> str:
    if isinstance(record, dict):
        return str(record.get("code", "")).strip().upper()
    return ""


def migrate_with_report(
    raw: Any, rules: Sequence[LegacyCityRule] = DEFAULT_LEGACY_RULES
) -> Tuple[Any, List[MigrationWarning]]:
    """
    Apply legacy rewrites to a raw config document.

    Args:
        raw: Parsed YAML document (left untouched)
        rules: City rewrite rules

    Returns:
        Tuple of (migrated copy, warnings describing each rewrite)
    """
    if not isinstance(raw, dict):
        return copy.deepcopy(raw), []

    doc = copy.deepcopy(raw)
    warnings: List[MigrationWarning] = []

    # Codes that current/home took over from a legacy city
    rewritten_codes = set()
    for slot in CITY_SLOTS:
        record, legacy_code = _rewrite_city(doc.get(slot), rules)
        if legacy_code is not None:
            doc[slot] = record
            rewritten_codes.add(_code_key(record))
            warnings.append(MigrationWarning(slot, f"legacy city '{legacy_code}' rewritten to '{record['code']}'"))

    tracked = doc.get("tracked_cities")
    if isinstance(tracked, list):
        anchor_codes = {_code_key(doc.get(slot)) for slot in CITY_SLOTS} - {""}
        seen = set()
        result = []
        for i, entry in enumerate(tracked):
            record, legacy_code = _rewrite_city(entry, rules)
            key = _code_key(record)
            if legacy_code is not None:
                if key in anchor_codes:
                    warnings.append(MigrationWarning(
                        f"tracked_cities[{i}]",
                        f"legacy city '{legacy_code}' dropped, '{key}' is already configured",
                    ))
                    continue
                warnings.append(MigrationWarning(
                    f"tracked_cities[{i}]", f"legacy city '{legacy_code}' rewritten to '{record['code']}'",
                ))
            elif key in rewritten_codes:
                warnings.append(MigrationWarning(
                    f"tracked_cities[{i}]",
                    f"tracked city '{key}' dropped, a migrated city now uses that code",
                ))
                continue
            if key and key in seen:
                warnings.append(MigrationWarning(f"tracked_cities[{i}]", f"duplicate tracked city '{key}' removed"))
                continue
            if key:
                seen.add(key)
            result.append(record)
        doc["tracked_cities"] = result

    return doc, warnings


def migrate(raw: Any, rules: Sequence[LegacyCityRule] = DEFAULT_LEGACY_RULES) -> Any:
    """Pure, idempotent legacy rewrite of a raw config document."""
    doc, _ = migrate_with_report(raw, rules)
    return doc
