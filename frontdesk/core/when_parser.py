from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable
from zoneinfo import ZoneInfo

from frontdesk.core.tz_projection import LocalCivilTime, add_days_local, project, to_utc, unproject

DEFAULT_HOUR = 12
DEFAULT_MINUTE = 0


@dataclass(frozen=True)
class ParsedTemporalExpression:
    rule: str
    has_explicit_time: bool
    hour: int
    minute: int
    has_explicit_calendar_date: bool
    is_relative_or_weekday: bool
    resolved_date: date


@dataclass(frozen=True)
class ClockTime:
    found: bool
    hour: int = DEFAULT_HOUR
    minute: int = DEFAULT_MINUTE


# "в 05.10" is a date, not five o'clock.
_AT_TIME_RE = re.compile(r"\bв\s*(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\b(?![.:]\d)")
_BARE_TIME_RE = re.compile(r"\b(?P<hour>\d{1,2}):(?P<minute>\d{2})\b")
_NUMERIC_DATE_RE = re.compile(r"\b(?P<day>\d{1,2})[.](?P<month>\d{1,2})(?:[.](?P<year>\d{4}))?\b")
_ISO_DATE_ONLY_RE = re.compile(r"^\d{4}-?\d{2}-?\d{2}$")

# Weekday index follows date.weekday(): Monday is 0.
_WEEKDAY_PATTERNS: tuple[tuple[int, re.Pattern[str]], ...] = (
    (0, re.compile(r"\bпонедельник(?:а|у|ом)?\b")),
    (1, re.compile(r"\bвторник(?:а|у|ом)?\b")),
    (2, re.compile(r"\bсред(?:а|у|ы|е|ой)\b")),
    (3, re.compile(r"\bчетверг(?:а|у|ом)?\b")),
    (4, re.compile(r"\bпятниц(?:а|у|ы|е|ей)\b")),
    (5, re.compile(r"\bсуббот(?:а|у|ы|е|ой)\b")),
    (6, re.compile(r"\bвоскресень(?:е|я|ю|ем)\b")),
)

_RELATIVE_DAYS: tuple[tuple[str, int], ...] = (
    ("послезавтра", 2),
    ("завтра", 1),
    ("сегодня", 0),
)


def extract_clock_time(text: str) -> ClockTime:
    match = _AT_TIME_RE.search(text) or _BARE_TIME_RE.search(text)
    if not match:
        return ClockTime(found=False)
    hour = min(23, max(0, int(match.group("hour"))))
    minute_raw = match.group("minute")
    minute = min(59, max(0, int(minute_raw))) if minute_raw else 0
    return ClockTime(found=True, hour=hour, minute=minute)


RuleHandler = Callable[[re.Match[str], str, LocalCivilTime, ZoneInfo], ParsedTemporalExpression | None]


def _weekday_handler(target_weekday: int) -> RuleHandler:
    def handle(match: re.Match[str], text: str, now: LocalCivilTime, tz: ZoneInfo) -> ParsedTemporalExpression:
        clock = extract_clock_time(text)
        delta = (target_weekday - date(now.year, now.month, now.day).weekday()) % 7
        target = add_days_local(now.with_clock(clock.hour, clock.minute), delta, tz)
        target_instant = unproject(target.with_clock(clock.hour, clock.minute), tz)
        # "now" goes through the same zone round-trip at minute precision.
        now_instant = unproject(now.with_clock(now.hour, now.minute), tz)
        if target_instant <= now_instant:
            target = add_days_local(target, 7, tz)
        return _relative_result("weekday", clock, target)

    return handle


def _relative_day_handler(days: int) -> RuleHandler:
    def handle(match: re.Match[str], text: str, now: LocalCivilTime, tz: ZoneInfo) -> ParsedTemporalExpression:
        clock = extract_clock_time(text)
        if days == 0:
            target = now.with_clock(clock.hour, clock.minute)
        else:
            target = add_days_local(now.with_clock(clock.hour, clock.minute), days, tz)
        return _relative_result("relative_day", clock, target)

    return handle


def _numeric_date_handler(
    match: re.Match[str], text: str, now: LocalCivilTime, tz: ZoneInfo
) -> ParsedTemporalExpression | None:
    year_raw = match.group("year")
    try:
        resolved = date(
            int(year_raw) if year_raw else now.year,
            int(match.group("month")),
            int(match.group("day")),
        )
    except ValueError:
        return None
    remainder = text.replace(match.group(0), " ", 1)
    clock = extract_clock_time(remainder)
    return ParsedTemporalExpression(
        rule="numeric_date",
        has_explicit_time=clock.found,
        hour=clock.hour,
        minute=clock.minute,
        has_explicit_calendar_date=True,
        is_relative_or_weekday=False,
        resolved_date=resolved,
    )


def _relative_result(rule: str, clock: ClockTime, target: LocalCivilTime) -> ParsedTemporalExpression:
    return ParsedTemporalExpression(
        rule=rule,
        has_explicit_time=clock.found,
        hour=clock.hour,
        minute=clock.minute,
        has_explicit_calendar_date=False,
        is_relative_or_weekday=True,
        resolved_date=date(target.year, target.month, target.day),
    )


def _build_rules() -> list[tuple[re.Pattern[str], RuleHandler]]:
    rules: list[tuple[re.Pattern[str], RuleHandler]] = []
    for weekday, pattern in _WEEKDAY_PATTERNS:
        rules.append((pattern, _weekday_handler(weekday)))
    for word, days in _RELATIVE_DAYS:
        rules.append((re.compile(rf"\b{word}\b"), _relative_day_handler(days)))
    rules.append((_NUMERIC_DATE_RE, _numeric_date_handler))
    return rules


RULES = _build_rules()


def parse_when(text: str, *, now: datetime, tz: ZoneInfo) -> ParsedTemporalExpression | None:
    """Extract a (date, time) pair from free Russian text relative to ``now``.

    The first rule whose pattern matches decides the calendar date. Clock
    time defaults to 12:00 when the text has none. Returns None when no rule
    applies and the text is not an ISO-8601 timestamp either.
    """
    raw = (text or "").strip()
    if not raw:
        return None
    lowered = raw.lower()
    now_civil = project(now, tz)
    for pattern, handler in RULES:
        match = pattern.search(lowered)
        if not match:
            continue
        parsed = handler(match, lowered, now_civil, tz)
        if parsed is not None:
            return parsed
    return _parse_timestamp(raw, tz)


def _parse_timestamp(raw: str, tz: ZoneInfo) -> ParsedTemporalExpression | None:
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    date_only = bool(_ISO_DATE_ONLY_RE.match(raw))
    if date_only:
        local = LocalCivilTime(parsed.year, parsed.month, parsed.day, DEFAULT_HOUR, DEFAULT_MINUTE)
    elif parsed.tzinfo is None:
        local = LocalCivilTime(parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute)
    else:
        local = project(to_utc(parsed), tz)
    return ParsedTemporalExpression(
        rule="timestamp",
        has_explicit_time=not date_only,
        hour=local.hour,
        minute=local.minute,
        has_explicit_calendar_date=True,
        is_relative_or_weekday=False,
        resolved_date=date(local.year, local.month, local.day),
    )
