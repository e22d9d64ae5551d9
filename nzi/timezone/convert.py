"""
DST-aware wall-clock conversion between IANA zones.

A wall-clock time is resolved against the source zone's rules for that
date, then the resulting instant is rendered in the target zone. Gaps and
overlaps never raise: they resolve deterministically and come back as an
explicit anomaly on the result.

- Gap (spring forward): the requested time never occurs. The time is
  shifted forward by the gap length and flagged Invalid(shifted_by).
- Overlap (fall back): the requested time occurs twice. The earlier
  instant (pre-transition offset) is chosen and flagged Ambiguous.

Offsets are recomputed on every call; two zones' relationship changes
across DST boundaries so nothing beyond a single resolved instant is kept.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

UTC = timezone.utc

ZoneLike = Union[str, ZoneInfo]


def format_offset(offset: timedelta) -> str:
    """Render a UTC offset as 'UTC+13:00' / 'UTC-03:30'."""
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, rem = divmod(abs(total), 3600)
    return f"UTC{sign}{hours:02d}:{rem // 60:02d}"


def format_duration(delta: timedelta) -> str:
    """Render a short duration as '1h', '30m', '1h30m'."""
    minutes = int(abs(delta.total_seconds())) // 60
    hours, minutes = divmod(minutes, 60)
    if hours and minutes:
        return f"{hours}h{minutes:02d}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


@dataclass(frozen=True)
class Ambiguous:
    """Wall-clock time occurs twice; the earlier instant was chosen."""

    chosen_offset: timedelta
    other_offset: timedelta

    def describe(self) -> str:
        return f"ambiguous time (DST overlap), using {format_offset(self.chosen_offset)}"


@dataclass(frozen=True)
class Invalid:
    """Wall-clock time does not exist; it was shifted forward by the gap."""

    shifted_by: timedelta

    def describe(self) -> str:
        return f"time skipped by DST, shifted forward {format_duration(self.shifted_by)}"


Anomaly = Union[Ambiguous, Invalid]


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a single conversion; recomputed per request."""

    requested: datetime  # naive wall-clock input
    source_local: datetime  # resolved, aware in the source zone
    target_local: datetime  # aware in the target zone
    anomaly: Optional[Anomaly] = None

    @property
    def instant(self) -> datetime:
        return self.source_local.astimezone(UTC)

    @property
    def day_offset(self) -> int:
        """Calendar day difference of the target relative to the requested date."""
        return (self.target_local.date() - self.requested.date()).days

    @property
    def is_ordinary(self) -> bool:
        return self.anomaly is None


def get_zone(zone: ZoneLike) -> ZoneInfo:
    """
    Resolve a zone identifier.

    Unknown identifiers raise ZoneInfoNotFoundError; config validation is
    expected to have rejected them already.
    """
    if isinstance(zone, ZoneInfo):
        return zone
    return ZoneInfo(zone)


def resolve_local(local: datetime, zone: ZoneLike) -> Tuple[datetime, Optional[Anomaly]]:
    """
    Resolve a wall-clock datetime against a zone's rules.

    Args:
        local: Wall-clock time; any tzinfo on it is ignored
        zone: IANA zone id or ZoneInfo

    Returns:
        Tuple of (aware datetime in zone, anomaly or None)
    """
    tz = get_zone(zone)
    naive = local.replace(tzinfo=None, fold=0)

    earlier = naive.replace(tzinfo=tz, fold=0)
    later = naive.replace(tzinfo=tz, fold=1)
    offset_before = earlier.utcoffset()
    offset_after = later.utcoffset()

    if offset_before == offset_after:
        return earlier, None

    # fold=0 uses the pre-transition offset in both gaps and overlaps
    instant = earlier.astimezone(UTC)
    round_trip = instant.astimezone(tz)
    if round_trip.replace(tzinfo=None) != naive:
        return round_trip, Invalid(shifted_by=offset_after - offset_before)

    return earlier, Ambiguous(chosen_offset=offset_before, other_offset=offset_after)


def convert(source_zone: ZoneLike, target_zone: ZoneLike, source_local: datetime) -> ConversionResult:
    """Convert a wall-clock time in source_zone to wall-clock time in target_zone."""
    resolved, anomaly = resolve_local(source_local, source_zone)
    target = resolved.astimezone(get_zone(target_zone))
    return ConversionResult(
        requested=source_local.replace(tzinfo=None),
        source_local=resolved,
        target_local=target,
        anomaly=anomaly,
    )


def today_in(zone: ZoneLike, now: Optional[datetime] = None) -> date:
    """Current calendar date in zone."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(get_zone(zone)).date()


def convert_wall_time(
    source_zone: ZoneLike,
    target_zone: ZoneLike,
    hour: int,
    minute: int,
    on: Optional[date] = None,
    now: Optional[datetime] = None,
) -> ConversionResult:
    """Convert hour:minute on a date (default: today in the source zone)."""
    day = on or today_in(source_zone, now)
    return convert(source_zone, target_zone, datetime.combine(day, time(hour, minute)))
