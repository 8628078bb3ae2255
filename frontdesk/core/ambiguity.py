from __future__ import annotations

import re
from datetime import datetime
from zoneinfo import ZoneInfo

from frontdesk.core.tz_projection import project
from frontdesk.core.when_parser import parse_when
from frontdesk.core.when_resolver import format_human_date, resolve_when

LATE_NIGHT_START_HOUR = 22
LATE_NIGHT_END_HOUR = 4

_ISO_DATE_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")
_NUMERIC_DATE_RE = re.compile(r"\b\d{1,2}[.]\d{1,2}(?:[.]\d{2,4})?\b")

GENERIC_CLARIFICATION = "Уточните, пожалуйста, точную дату в формате ДД.ММ.ГГГГ."


def is_late_night(now: datetime, tz: ZoneInfo) -> bool:
    hour = project(now, tz).hour
    return hour >= LATE_NIGHT_START_HOUR or hour < LATE_NIGHT_END_HOUR


def has_explicit_calendar_date(text: str | None) -> bool:
    lowered = (text or "").lower()
    return bool(_ISO_DATE_RE.search(lowered) or _NUMERIC_DATE_RE.search(lowered))


def requires_clarification(text: str | None, *, now: datetime, tz: ZoneInfo) -> bool:
    """Late at night "завтра" or "в пятницу" may mean a different day than the
    user thinks, so relative phrases without a calendar date need confirming."""
    if not is_late_night(now, tz):
        return False
    if has_explicit_calendar_date(text):
        return False
    parsed = parse_when(text or "", now=now, tz=tz)
    return parsed is not None and parsed.is_relative_or_weekday


def clarification_prompt(text: str | None, *, now: datetime, tz: ZoneInfo) -> str:
    resolved = resolve_when(text or "", now=now, tz=tz)
    candidate = format_human_date(resolved.local_plain, tz)
    if not candidate:
        return GENERIC_CLARIFICATION
    return f"Уточню: вы имеете в виду {candidate}? Ответьте полной датой в формате ДД.ММ.ГГГГ."
