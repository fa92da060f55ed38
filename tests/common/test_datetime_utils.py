from datetime import date, time

from hr_backoffice.common.datetime_utils import (
    count_calendar_days,
    count_leave_days,
    count_weekdays,
    day_first,
    iter_dates,
    normalize_clock_text,
    normalize_date_text,
    parse_clock_time,
)

# 2024-01-01 is a Monday.
MONDAY = date(2024, 1, 1)


def test_monday_to_friday_counts_five_days():
    assert count_weekdays(MONDAY, date(2024, 1, 5)) == 5


def test_weekend_is_excluded_from_count():
    assert count_weekdays(MONDAY, date(2024, 1, 7)) == 5
    assert count_weekdays(date(2024, 1, 6), date(2024, 1, 7)) == 0


def test_single_weekday_counts_one():
    assert count_weekdays(date(2024, 1, 3), date(2024, 1, 3)) == 1


def test_range_spanning_weeks():
    # Friday to the Monday ten days later: Fri, Mon-Fri, Mon
    assert count_weekdays(date(2024, 1, 5), date(2024, 1, 15)) == 7


def test_inverted_range_counts_zero():
    assert count_weekdays(date(2024, 1, 5), MONDAY) == 0
    assert count_calendar_days(date(2024, 1, 5), MONDAY) == 0


def test_weekend_inclusive_variant():
    assert count_leave_days(MONDAY, date(2024, 1, 7)) == 5
    assert count_leave_days(MONDAY, date(2024, 1, 7), include_weekend=True) == 7


def test_iter_dates_is_inclusive():
    assert list(iter_dates(MONDAY, date(2024, 1, 3))) == [MONDAY, date(2024, 1, 2), date(2024, 1, 3)]


def test_parse_clock_time_formats():
    assert parse_clock_time("08:30") == time(8, 30)
    assert parse_clock_time("07:05:59") == time(7, 5)
    assert parse_clock_time("2024-01-15 08:16:00") == time(8, 16)


def test_parse_clock_time_rejects_garbage():
    assert parse_clock_time("") is None
    assert parse_clock_time("late") is None
    assert parse_clock_time("25:00") is None


def test_normalize_date_text_formats():
    assert normalize_date_text("2026-02-01") == "2026-02-01"
    assert normalize_date_text("2026-02-01 00:00:00") == "2026-02-01"
    assert normalize_date_text("1/2/2026") == "2026-02-01"
    assert normalize_date_text("") is None
    assert normalize_date_text("Monday") is None


def test_normalize_clock_text():
    assert normalize_clock_text("2026-02-01 08:30:00") == "08:30"
    assert normalize_clock_text("7:05") == "07:05"
    assert normalize_clock_text("-") is None


def test_day_first():
    assert day_first("2026-02-01") == "01-02-2026"
    assert day_first("01/02/2026") == "01/02/2026"
