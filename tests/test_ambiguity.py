from __future__ import annotations

from datetime import datetime, timezone

import pytest

from frontdesk.core.ambiguity import (
    GENERIC_CLARIFICATION,
    clarification_prompt,
    has_explicit_calendar_date,
    is_late_night,
    requires_clarification,
)


@pytest.mark.parametrize(
    ("utc_hour", "utc_minute", "expected"),
    [
        (15, 59, False),  # 21:59
        (16, 0, True),  # 22:00
        (21, 59, True),  # 03:59
        (22, 0, False),  # 04:00
    ],
)
def test_late_night_window(utc_hour, utc_minute, expected, omsk) -> None:
    now = datetime(2025, 10, 4, utc_hour, utc_minute, tzinfo=timezone.utc)

    assert is_late_night(now, omsk) is expected


def test_explicit_calendar_date_detection() -> None:
    assert has_explicit_calendar_date("05.10.2025")
    assert has_explicit_calendar_date("5.10")
    assert has_explicit_calendar_date("на 2025-10-05")
    assert not has_explicit_calendar_date("завтра в 9")
    assert not has_explicit_calendar_date(None)


def test_relative_phrase_late_at_night_requires_clarification(omsk, late_now) -> None:
    assert requires_clarification("завтра", now=late_now, tz=omsk)
    assert requires_clarification("в пятницу", now=late_now, tz=omsk)


def test_calendar_date_late_at_night_is_accepted(omsk, late_now) -> None:
    assert not requires_clarification("05.10.2025", now=late_now, tz=omsk)
    assert not requires_clarification("2025-10-05T12:00:00", now=late_now, tz=omsk)
    assert not requires_clarification("завтра, 05.10.2025", now=late_now, tz=omsk)


def test_daytime_and_unparsed_need_no_clarification(omsk, day_now, late_now) -> None:
    assert not requires_clarification("завтра", now=day_now, tz=omsk)
    assert not requires_clarification("когда удобно", now=late_now, tz=omsk)


def test_clarification_prompt_names_candidate_date(omsk, late_now) -> None:
    prompt = clarification_prompt("завтра", now=late_now, tz=omsk)

    assert prompt == "Уточню: вы имеете в виду 05.10.2025? Ответьте полной датой в формате ДД.ММ.ГГГГ."


def test_clarification_prompt_without_candidate(omsk, late_now) -> None:
    assert clarification_prompt("когда удобно", now=late_now, tz=omsk) == GENERIC_CLARIFICATION
