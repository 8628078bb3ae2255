from __future__ import annotations

from datetime import datetime, timezone

import pytest

from frontdesk.core.when_resolver import format_human_date, parse_local_plain, resolve_when, same_scheduled_moment


def test_tomorrow_at_nine(omsk, day_now) -> None:
    resolved = resolve_when("завтра в 9", now=day_now, tz=omsk)

    assert resolved.is_resolved
    assert resolved.local_plain == "2025-10-05T09:00:00"
    assert resolved.utc_iso == "2025-10-05T03:00:00.000Z"
    assert resolved.instant == datetime(2025, 10, 5, 3, 0, tzinfo=timezone.utc)


def test_explicit_date_and_time(omsk, day_now) -> None:
    resolved = resolve_when("25.12.2025 в 18:30", now=day_now, tz=omsk)

    assert resolved.local_plain == "2025-12-25T18:30:00"


def test_today_defaults_to_noon(omsk, day_now) -> None:
    resolved = resolve_when("сегодня", now=day_now, tz=omsk)

    assert resolved.local_plain == "2025-10-04T12:00:00"


def test_unparsed_text_passes_through(omsk, day_now) -> None:
    resolved = resolve_when("  когда-нибудь ", now=day_now, tz=omsk)

    assert not resolved.is_resolved
    assert resolved.local_plain == "когда-нибудь"
    assert resolved.utc_iso == "когда-нибудь"
    assert resolved.parsed is None


def test_parse_local_plain_variants(omsk) -> None:
    expected = datetime(2025, 10, 5, 3, 0, tzinfo=timezone.utc)

    assert parse_local_plain("2025-10-05T09:00:00", omsk) == expected
    assert parse_local_plain("2025-10-05T09:00:00+06:00", omsk) == expected
    assert parse_local_plain("2025-10-05 09:00", omsk) == expected
    assert parse_local_plain("2025-13-05T09:00:00", omsk) is None
    assert parse_local_plain("завтра", omsk) is None
    assert parse_local_plain(None, omsk) is None


def test_format_human_date(omsk) -> None:
    assert format_human_date("2025-10-05T09:00:00", omsk) == "05.10.2025"
    assert format_human_date("не дата", omsk) == ""


def test_same_scheduled_moment(omsk) -> None:
    assert same_scheduled_moment("2025-10-10T12:00:00", "2025-10-10T12:00:00", omsk)
    assert same_scheduled_moment("2025-10-10T12:00:00", "2025-10-10T12:04:00", omsk)
    assert not same_scheduled_moment("2025-10-10T12:00:00", "2025-10-10T12:05:00", omsk)
    assert same_scheduled_moment("свободный текст", "свободный текст", omsk)
    assert not same_scheduled_moment("свободный текст", "2025-10-10T12:00:00", omsk)


@pytest.mark.parametrize(
    ("phrase", "weekday"),
    [
        ("в понедельник", 0),
        ("во вторник", 1),
        ("в среду", 2),
        ("в четверг", 3),
        ("в пятницу", 4),
        ("в субботу", 5),
        ("в воскресенье", 6),
    ],
)
@pytest.mark.parametrize(
    "now",
    [
        datetime(2025, 10, 4, 6, 0, tzinfo=timezone.utc),
        datetime(2025, 10, 4, 17, 10, tzinfo=timezone.utc),
        datetime(2025, 10, 8, 0, 30, tzinfo=timezone.utc),
    ],
)
def test_weekday_lands_on_that_weekday_in_the_future(phrase, weekday, now, omsk) -> None:
    resolved = resolve_when(phrase, now=now, tz=omsk)

    assert resolved.instant is not None
    assert resolved.instant > now
    assert resolved.instant.astimezone(omsk).weekday() == weekday
