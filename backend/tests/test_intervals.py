from datetime import date

import pytest

from coverdesk.services.intervals import (
    Interval,
    Weekday,
    check_teaching_window,
    coerce_minutes,
    minutes_to_hhmm,
    overlaps,
    parse_time_to_minutes,
    parse_weekday,
    week_start_for,
    weekday_for,
)


def test_time_parsing_roundtrip_for_known_values():
    assert parse_time_to_minutes("09:00") == 540
    assert parse_time_to_minutes("17:00") == 1020
    assert minutes_to_hhmm(615) == "10:15"
    assert coerce_minutes(" 10:30 ") == 630
    assert coerce_minutes(0) == 0


@pytest.mark.parametrize("value", ["9:00", "24:00", "10:60", "ten", 1440, -1, True, 9.5])
def test_invalid_times_are_rejected(value):
    with pytest.raises(ValueError):
        coerce_minutes(value)


def test_weekday_parsing_accepts_full_and_short_names():
    assert parse_weekday("monday") == Weekday.monday
    assert parse_weekday("Sat") == Weekday.saturday
    assert parse_weekday(Weekday.friday) == Weekday.friday
    with pytest.raises(ValueError):
        parse_weekday("Sunday")
    with pytest.raises(ValueError):
        parse_weekday("Funday")


def test_calendar_helpers():
    # 2024-03-04 is a Monday
    assert weekday_for(date(2024, 3, 4)) == Weekday.monday
    assert weekday_for(date(2024, 3, 9)) == Weekday.saturday
    assert weekday_for(date(2024, 3, 10)) is None
    assert week_start_for(date(2024, 3, 7)) == date(2024, 3, 4)
    assert week_start_for(date(2024, 3, 10)) == date(2024, 3, 4)
    assert week_start_for(date(2024, 3, 4)) == date(2024, 3, 4)


def test_overlap_is_half_open_and_symmetric():
    a = Interval(Weekday.monday, 540, 600)
    b = Interval(Weekday.monday, 600, 660)
    c = Interval(Weekday.monday, 570, 630)
    other_day = Interval(Weekday.tuesday, 540, 600)

    assert not overlaps(a, b)
    assert not overlaps(b, a)
    assert overlaps(a, c) and overlaps(c, a)
    assert overlaps(b, c) and overlaps(c, b)
    assert not overlaps(a, other_day)
    assert a.overlaps(c)


def test_whole_day_interval_covers_every_slot():
    day = Interval.whole_day(Weekday.wednesday)
    assert overlaps(day, Interval(Weekday.wednesday, 540, 545))
    assert overlaps(day, Interval(Weekday.wednesday, 1000, 1020))


def test_interval_rejects_empty_or_inverted_ranges():
    with pytest.raises(ValueError):
        Interval(Weekday.monday, 600, 600)
    with pytest.raises(ValueError):
        Interval(Weekday.monday, 660, 600)


def test_teaching_window():
    check_teaching_window(540, 1020)
    with pytest.raises(ValueError, match="only 09:00-17:00 allowed"):
        check_teaching_window(480, 600)
    with pytest.raises(ValueError, match="only 09:00-17:00 allowed"):
        check_teaching_window(960, 1080)
    with pytest.raises(ValueError):
        check_teaching_window(600, 600)
