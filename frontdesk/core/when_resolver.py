from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from frontdesk.core.tz_projection import LocalCivilTime, format_civil, format_utc_iso, project, to_utc, unproject
from frontdesk.core.when_parser import ParsedTemporalExpression, parse_when

MATCH_TOLERANCE = timedelta(minutes=5)

_LOCAL_PLAIN_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})$"
)


@dataclass(frozen=True)
class ResolvedWhen:
    instant: datetime | None
    utc_iso: str
    local_plain: str
    parsed: ParsedTemporalExpression | None = None

    @property
    def is_resolved(self) -> bool:
        return self.instant is not None


def resolve_when(text: str, *, now: datetime, tz: ZoneInfo) -> ResolvedWhen:
    """Turn free text into an instant plus the canonical local string.

    Every booking operation goes through here so that stored ``when`` values
    compare equal across create, reschedule and cancel. Text that cannot be
    resolved comes back unchanged in both string fields with ``instant=None``.
    """
    source = (text or "").strip()
    parsed = parse_when(source, now=now, tz=tz)
    if parsed is None:
        return ResolvedWhen(instant=None, utc_iso=source, local_plain=source)
    civil = LocalCivilTime(
        parsed.resolved_date.year,
        parsed.resolved_date.month,
        parsed.resolved_date.day,
        parsed.hour,
        parsed.minute,
    )
    instant = unproject(civil, tz)
    return ResolvedWhen(
        instant=instant,
        utc_iso=format_utc_iso(instant),
        local_plain=format_civil(civil),
        parsed=parsed,
    )


def parse_local_plain(value: str | None, tz: ZoneInfo) -> datetime | None:
    raw = (value or "").strip()
    if not raw:
        return None
    match = _LOCAL_PLAIN_RE.match(raw)
    if match:
        try:
            civil = LocalCivilTime(*(int(part) for part in match.groups()))
            civil.as_naive()
        except ValueError:
            return None
        return unproject(civil, tz)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return unproject(
            LocalCivilTime(parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute, parsed.second),
            tz,
        )
    return to_utc(parsed)


def format_human_date(value: str | None, tz: ZoneInfo) -> str:
    instant = parse_local_plain(value, tz)
    if instant is None:
        return ""
    local = project(instant, tz)
    return f"{local.day:02d}.{local.month:02d}.{local.year}"


def same_scheduled_moment(left: str | None, right: str | None, tz: ZoneInfo) -> bool:
    if str(left or "").strip() == str(right or "").strip():
        return True
    left_instant = parse_local_plain(left, tz)
    right_instant = parse_local_plain(right, tz)
    if left_instant is None or right_instant is None:
        return False
    return abs(left_instant - right_instant) < MATCH_TOLERANCE
