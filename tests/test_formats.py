from __future__ import annotations

import pendulum
import pytest

from calnotes.dates.formats import (
    format_date,
    parse_with_format,
    tokenize,
    week_of_year,
    weeks_in_year,
)
from calnotes.dates.parse import basename_of, canonical_period_uid, name_format, shift, start_of_period
from calnotes.models import DEFAULT_FORMATS, ISO_FORMATS, ISO_WEEK, Granularity, WeekSpec

SUNDAY_WEEK = WeekSpec.from_week_start("sunday")


def test_tokenize_keeps_escaped_literals() -> None:
    segments = tokenize("gggg-[W]ww")
    assert [(s.text, s.is_token) for s in segments] == [("gggg", True), ("-W", False), ("ww", True)]


def test_format_common_tokens() -> None:
    dt = pendulum.naive(2024, 3, 10, 14, 5, 9)
    assert format_date(dt, "YYYY-MM-DD") == "2024-03-10"
    assert format_date(dt, "dddd, MMMM Do YYYY") == "Sunday, March 10th 2024"
    assert format_date(dt, "ddd D MMM YY") == "Sun 10 Mar 24"
    assert format_date(dt, "YYYY-[Q]Q") == "2024-Q1"
    assert format_date(dt, "HH:mm:ss") == "14:05:09"
    assert format_date(dt, "h:mm a") == "2:05 pm"
    assert format_date(dt, "DDDD") == "070"


def test_format_iso_and_locale_weeks() -> None:
    sunday = pendulum.naive(2024, 3, 10)
    assert format_date(sunday, "GGGG-[W]WW") == "2024-W10"
    assert format_date(sunday, "gggg-[W]ww", ISO_WEEK) == "2024-W10"
    assert format_date(sunday, "gggg-[W]ww", SUNDAY_WEEK) == "2024-W11"


def test_week_of_year_at_year_boundaries() -> None:
    assert week_of_year(pendulum.naive(2021, 1, 1)) == (2020, 53)
    assert week_of_year(pendulum.naive(2024, 12, 30)) == (2025, 1)
    assert weeks_in_year(2020) == 53
    assert weeks_in_year(2021) == 52


def test_strict_parse_rejects_partial_and_invalid_names() -> None:
    assert parse_with_format("2024-03-10", "YYYY-MM-DD") == pendulum.naive(2024, 3, 10)
    assert parse_with_format("2024-03-10 draft", "YYYY-MM-DD") is None
    assert parse_with_format("2024-3-10", "YYYY-MM-DD") is None
    assert parse_with_format("2024-02-30", "YYYY-MM-DD") is None
    assert parse_with_format("2024-13-01", "YYYY-MM-DD") is None
    assert parse_with_format("meeting notes", "YYYY-MM-DD") is None


def test_parse_rejects_weekday_that_disagrees_with_date() -> None:
    assert parse_with_format("Sunday 2024-03-10", "dddd YYYY-MM-DD") == pendulum.naive(2024, 3, 10)
    assert parse_with_format("Monday 2024-03-10", "dddd YYYY-MM-DD") is None


def test_parse_month_names_case_insensitive() -> None:
    assert parse_with_format("march 2024", "MMMM YYYY") == pendulum.naive(2024, 3, 1)
    assert parse_with_format("10 MAR 2024", "D MMM YYYY") == pendulum.naive(2024, 3, 10)


def test_parse_weeks_and_quarters() -> None:
    assert parse_with_format("2020-W53", "GGGG-[W]WW") == pendulum.naive(2020, 12, 28)
    assert parse_with_format("2021-W53", "GGGG-[W]WW") is None
    assert parse_with_format("2024-W11", "gggg-[W]ww", week_spec=SUNDAY_WEEK) == pendulum.naive(2024, 3, 10)
    assert parse_with_format("2024-Q2", "YYYY-[Q]Q") == pendulum.naive(2024, 4, 1)
    assert parse_with_format("2024-Q5", "YYYY-[Q]Q") is None


def test_parse_two_digit_years() -> None:
    assert parse_with_format("24-03-10", "YY-MM-DD") == pendulum.naive(2024, 3, 10)
    assert parse_with_format("69-01-01", "YY-MM-DD") == pendulum.naive(1969, 1, 1)


def test_names_without_a_period_field_do_not_parse() -> None:
    assert parse_with_format("09:30", "HH:mm") is None


def test_start_of_period() -> None:
    wednesday = pendulum.naive(2024, 3, 13, 17, 45)
    assert start_of_period(wednesday, Granularity.DAY) == pendulum.naive(2024, 3, 13)
    assert start_of_period(wednesday, Granularity.WEEK) == pendulum.naive(2024, 3, 11)
    assert start_of_period(wednesday, Granularity.WEEK, SUNDAY_WEEK) == pendulum.naive(2024, 3, 10)
    assert start_of_period(wednesday, Granularity.MONTH) == pendulum.naive(2024, 3, 1)
    assert start_of_period(pendulum.naive(2024, 5, 20), Granularity.QUARTER) == pendulum.naive(2024, 4, 1)
    assert start_of_period(wednesday, Granularity.YEAR) == pendulum.naive(2024, 1, 1)


def test_period_uid_is_shared_within_a_period() -> None:
    uid = canonical_period_uid(pendulum.naive(2024, 3, 4), Granularity.WEEK)
    assert uid == "week-2024-03-04T00:00:00"
    for day in range(4, 11):
        assert canonical_period_uid(pendulum.naive(2024, 3, day, 23, 59), Granularity.WEEK) == uid
    assert canonical_period_uid(pendulum.naive(2024, 3, 11), Granularity.WEEK) != uid
    assert canonical_period_uid(pendulum.naive(2024, 3, 10), Granularity.DAY) == "day-2024-03-10T00:00:00"


@pytest.mark.parametrize(
    "day",
    [
        pendulum.naive(2020, 12, 31),
        pendulum.naive(2021, 1, 3),
        pendulum.naive(2024, 2, 29),
        pendulum.naive(2024, 12, 30),
    ],
)
@pytest.mark.parametrize("granularity", list(Granularity))
def test_default_and_iso_formats_identify_the_period(day, granularity: Granularity) -> None:
    for fmt in (DEFAULT_FORMATS[granularity], ISO_FORMATS[granularity]):
        parsed = parse_with_format(format_date(day, fmt), fmt, prefer_week=granularity is Granularity.WEEK)
        assert parsed is not None, fmt
        assert canonical_period_uid(parsed, granularity) == canonical_period_uid(day, granularity)


def test_basename_and_name_format() -> None:
    assert basename_of("Daily/2024/2024-03-10.md") == "2024-03-10"
    assert basename_of("2024-03-10") == "2024-03-10"
    assert name_format("YYYY/MM/YYYY-MM-DD") == "YYYY-MM-DD"


def test_shift_units() -> None:
    dt = pendulum.naive(2024, 1, 31, 12)
    assert shift(dt, 1, "m") == pendulum.naive(2024, 2, 29, 12)
    assert shift(dt, -1, "q") == pendulum.naive(2023, 10, 31, 12)
    assert shift(dt, 2, "w") == pendulum.naive(2024, 2, 14, 12)
    assert shift(dt, -3, "h") == pendulum.naive(2024, 1, 31, 9)
    with pytest.raises(ValueError):
        shift(dt, 1, "x")
