from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from frontdesk.core.when_parser import extract_clock_time, parse_when


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("в понедельник", date(2025, 10, 6)),
        ("во вторник", date(2025, 10, 7)),
        ("в среду", date(2025, 10, 8)),
        ("в четверг", date(2025, 10, 9)),
        ("в пятницу", date(2025, 10, 10)),
        ("в воскресенье", date(2025, 10, 5)),
    ],
)
def test_weekday_resolves_to_next_occurrence(text, expected, omsk, day_now) -> None:
    parsed = parse_when(text, now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == expected
    assert parsed.is_relative_or_weekday is True
    assert parsed.has_explicit_calendar_date is False
    assert (parsed.hour, parsed.minute) == (12, 0)


def test_same_weekday_already_passed_moves_a_week(omsk, day_now) -> None:
    parsed = parse_when("в субботу", now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 11)


def test_same_weekday_later_today_stays_today(omsk, day_now) -> None:
    parsed = parse_when("в субботу в 18", now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 4)
    assert (parsed.hour, parsed.minute) == (18, 0)
    assert parsed.has_explicit_time is True


def test_weekday_is_taken_from_zone_date(omsk) -> None:
    # 19:00 UTC в субботу это 01:00 воскресенья по Омску.
    now = datetime(2025, 10, 4, 19, 0, tzinfo=timezone.utc)

    parsed = parse_when("в понедельник", now=now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 6)


def test_relative_days(omsk, day_now) -> None:
    today = parse_when("сегодня", now=day_now, tz=omsk)
    tomorrow = parse_when("завтра в 9", now=day_now, tz=omsk)
    after = parse_when("Послезавтра 18:30", now=day_now, tz=omsk)

    assert today is not None and today.resolved_date == date(2025, 10, 4)
    assert tomorrow is not None and tomorrow.resolved_date == date(2025, 10, 5)
    assert (tomorrow.hour, tomorrow.minute) == (9, 0)
    assert after is not None and after.resolved_date == date(2025, 10, 6)
    assert (after.hour, after.minute) == (18, 30)


def test_numeric_date_with_time_in_remainder(omsk, day_now) -> None:
    parsed = parse_when("25.12.2025 в 18:30", now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.rule == "numeric_date"
    assert parsed.resolved_date == date(2025, 12, 25)
    assert (parsed.hour, parsed.minute) == (18, 30)
    assert parsed.has_explicit_calendar_date is True
    assert parsed.is_relative_or_weekday is False


def test_numeric_date_without_year_uses_current_year(omsk, day_now) -> None:
    parsed = parse_when("10.10 в 10", now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 10)
    assert (parsed.hour, parsed.minute) == (10, 0)


def test_impossible_numeric_date_is_not_parsed(omsk, day_now) -> None:
    assert parse_when("31.02.2025", now=day_now, tz=omsk) is None


def test_iso_timestamp_fallback(omsk, day_now) -> None:
    naive = parse_when("2025-10-05T09:00:00", now=day_now, tz=omsk)
    aware = parse_when("2025-10-05T03:00:00+00:00", now=day_now, tz=omsk)

    assert naive is not None and naive.rule == "timestamp"
    assert naive.resolved_date == date(2025, 10, 5)
    assert (naive.hour, naive.minute) == (9, 0)
    assert aware is not None
    assert (aware.resolved_date, aware.hour, aware.minute) == (date(2025, 10, 5), 9, 0)


def test_unrecognized_text(omsk, day_now) -> None:
    assert parse_when("когда-нибудь", now=day_now, tz=omsk) is None
    assert parse_when("   ", now=day_now, tz=omsk) is None


def test_clock_time_defaults_and_clamps() -> None:
    assert extract_clock_time("без времени") == extract_clock_time("")
    missing = extract_clock_time("без времени")
    assert missing.found is False
    assert (missing.hour, missing.minute) == (12, 0)

    clamped = extract_clock_time("завтра в 27:75")
    assert clamped.found is True
    assert (clamped.hour, clamped.minute) == (23, 59)

    bare = extract_clock_time("к 7:05 подойду")
    assert (bare.hour, bare.minute) == (7, 5)


def test_iso_date_without_time_defaults_to_noon(omsk, day_now) -> None:
    parsed = parse_when("2025-10-05", now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 5)
    assert (parsed.hour, parsed.minute) == (12, 0)
    assert parsed.has_explicit_time is False


def test_date_after_preposition_is_not_a_clock_time(omsk, day_now) -> None:
    parsed = parse_when("завтра в 05.10.2025", now=day_now, tz=omsk)

    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 5)
    assert (parsed.hour, parsed.minute) == (12, 0)
    assert extract_clock_time("в 05.10").found is False
    assert extract_clock_time("в 18:30.").hour == 18


def test_relative_word_must_stand_alone(omsk, day_now) -> None:
    assert parse_when("после завтрака в 10", now=day_now, tz=omsk) is None
    assert parse_when("сегодняшнее занятие", now=day_now, tz=omsk) is None

    parsed = parse_when("Завтра, в 10", now=day_now, tz=omsk)
    assert parsed is not None
    assert parsed.resolved_date == date(2025, 10, 5)
    assert (parsed.hour, parsed.minute) == (10, 0)
