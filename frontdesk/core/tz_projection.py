"""Instant <-> zone-local civil time conversions.

Instants are timezone-aware datetimes normalized to UTC. Civil time is the
wall-clock reading in a configured zone, with no zone attached.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

# unproject() gives up refining after this many offset lookups
MAX_OFFSET_ITERATIONS = 2
CONVERGENCE_TOLERANCE = timedelta(minutes=1)

_WEEKDAYS_RU = ("понедельник", "вторник", "среда", "четверг", "пятница", "суббота", "воскресенье")
_MONTHS_RU_SHORT = (
    "янв.",
    "февр.",
    "мар.",
    "апр.",
    "мая",
    "июн.",
    "июл.",
    "авг.",
    "сент.",
    "окт.",
    "нояб.",
    "дек.",
)


@dataclass(frozen=True)
class LocalCivilTime:
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    def with_clock(self, hour: int, minute: int, second: int = 0) -> LocalCivilTime:
        return replace(self, hour=hour, minute=minute, second=second)

    def as_naive(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)


def to_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def offset_minutes(instant: datetime, tz: ZoneInfo) -> int:
    offset = to_utc(instant).astimezone(tz).utcoffset() or timedelta(0)
    return round(offset.total_seconds() / 60)


def project(instant: datetime, tz: ZoneInfo) -> LocalCivilTime:
    local = to_utc(instant).astimezone(tz)
    return LocalCivilTime(local.year, local.month, local.day, local.hour, local.minute, local.second)


def unproject(civil: LocalCivilTime, tz: ZoneInfo) -> datetime:
    """Find the instant whose wall-clock reading in ``tz`` is ``civil``.

    The offset depends on the instant being searched for, so start from the
    civil fields read as UTC and refine with the offset at the current guess.
    Stops once two guesses agree within a minute, or after
    MAX_OFFSET_ITERATIONS lookups. Near a DST switch the last guess is
    returned as is; this never raises.
    """
    as_utc = civil.as_naive().replace(tzinfo=timezone.utc)
    guess = as_utc
    for _ in range(MAX_OFFSET_ITERATIONS):
        target = as_utc - timedelta(minutes=offset_minutes(guess, tz))
        if abs(target - guess) < CONVERGENCE_TOLERANCE:
            guess = target
            break
        guess = target
    return guess


def add_days_local(civil: LocalCivilTime, days: int, tz: ZoneInfo) -> LocalCivilTime:
    """Shift a civil moment by whole days through absolute time.

    Only the calendar date comes from the reprojection; hour and minute of
    ``civil`` are kept.
    """
    start = unproject(civil.with_clock(civil.hour, civil.minute), tz)
    shifted = project(start + timedelta(seconds=days * 86400), tz)
    return LocalCivilTime(shifted.year, shifted.month, shifted.day, civil.hour, civil.minute)


def format_local_plain(instant: datetime, tz: ZoneInfo) -> str:
    return format_civil(project(instant, tz))


def format_civil(civil: LocalCivilTime) -> str:
    return (
        f"{civil.year:04d}-{civil.month:02d}-{civil.day:02d}"
        f"T{civil.hour:02d}:{civil.minute:02d}:{civil.second:02d}"
    )


def format_local_rfc3339(instant: datetime, tz: ZoneInfo) -> str:
    offset = offset_minutes(instant, tz)
    sign = "+" if offset >= 0 else "-"
    hours, minutes = divmod(abs(offset), 60)
    return f"{format_local_plain(instant, tz)}{sign}{hours:02d}:{minutes:02d}"


def format_utc_iso(instant: datetime) -> str:
    value = to_utc(instant)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def weekday_name_ru(instant: datetime, tz: ZoneInfo) -> str:
    return _WEEKDAYS_RU[to_utc(instant).astimezone(tz).weekday()]


def format_now_ru(instant: datetime, tz: ZoneInfo) -> str:
    local = project(instant, tz)
    month = _MONTHS_RU_SHORT[local.month - 1]
    return f"{local.day} {month} {local.year} г., {local.hour:02d}:{local.minute:02d}"
