from datetime import datetime, timedelta, timezone
import pytest
from basket_api.basket.schedule import (BuyOnceFrequency, CustomFrequency, MonthlyFrequency, QuarterlyFrequency,
                                        WeeklyFrequency, frequency_to_dict, next_run, parse_frequency,
                                        sunday_based_weekday)
from basket_api.common.custom_exceptions import ValidationError

# monday
NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def test_sunday_based_weekday():
    assert sunday_based_weekday(NOW) == 1
    assert sunday_based_weekday(datetime(2024, 1, 14, tzinfo=timezone.utc)) == 0
    assert sunday_based_weekday(datetime(2024, 1, 20, tzinfo=timezone.utc)) == 6


@pytest.mark.parametrize("day_of_week, expected", [
    (1, datetime(2024, 1, 22, 10, 0, tzinfo=timezone.utc)),    # same weekday rolls a full week
    (3, datetime(2024, 1, 17, 10, 0, tzinfo=timezone.utc)),
    (0, datetime(2024, 1, 21, 10, 0, tzinfo=timezone.utc)),
])
def test_weekly_next_run(day_of_week, expected):
    assert next_run(WeeklyFrequency(day_of_week=day_of_week), NOW) == expected


def test_weekly_always_lands_on_the_requested_day_within_a_week():
    for days in range(14):
        start = NOW + timedelta(days=days)
        for d in range(7):
            result = next_run(WeeklyFrequency(day_of_week=d), start)
            assert timedelta(days=1) <= result - start <= timedelta(days=7)
            assert sunday_based_weekday(result) == d
            assert result.time() == start.time()


def test_monthly_caps_day_at_28():
    result = next_run(MonthlyFrequency(day_of_month=31), NOW)
    assert result == datetime(2024, 2, 28, 10, 0, tzinfo=timezone.utc)


def test_monthly_plain_day():
    assert next_run(MonthlyFrequency(day_of_month=5), NOW) == datetime(2024, 2, 5, 10, 0, tzinfo=timezone.utc)


def test_monthly_rolls_over_the_year():
    start = datetime(2024, 12, 20, 8, 30, tzinfo=timezone.utc)
    assert next_run(MonthlyFrequency(day_of_month=3), start) == datetime(2025, 1, 3, 8, 30, tzinfo=timezone.utc)


def test_quarterly_defaults_to_current_day():
    assert next_run(QuarterlyFrequency(), NOW) == datetime(2024, 4, 15, 10, 0, tzinfo=timezone.utc)


def test_quarterly_caps_day_at_28():
    assert next_run(QuarterlyFrequency(day_of_month=30), NOW) == datetime(2024, 4, 28, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("interval, expected_days", [(10, 10), (None, 30), (0, 30)])
def test_custom_interval(interval, expected_days):
    assert next_run(CustomFrequency(interval_days=interval), NOW) == NOW + timedelta(days=expected_days)


def test_buy_once_is_due_now():
    assert next_run(BuyOnceFrequency(), NOW) == NOW


def test_parse_frequency_reads_camel_case():
    freq = parse_frequency({"type": "weekly", "dayOfWeek": 3})
    assert isinstance(freq, WeeklyFrequency)
    assert freq.day_of_week == 3
    assert frequency_to_dict(freq) == {"type": "weekly", "dayOfWeek": 3}


def test_parse_frequency_drops_fields_of_other_variants():
    freq = parse_frequency({"type": "custom", "intervalDays": 12, "dayOfWeek": 2})
    assert frequency_to_dict(freq) == {"type": "custom", "intervalDays": 12}


@pytest.mark.parametrize("raw, fragment", [
    (None, "frequency is required"),
    ({}, "frequency is required"),
    ("weekly", "frequency must be an object"),
    ({"type": "daily"}, "frequency.type must be one of"),
    ({"type": "weekly"}, "invalid weekly frequency"),
    ({"type": "weekly", "dayOfWeek": 7}, "invalid weekly frequency"),
    ({"type": "monthly"}, "invalid monthly frequency"),
    ({"type": "monthly", "dayOfMonth": 0}, "invalid monthly frequency"),
    ({"type": "custom", "intervalDays": -1}, "invalid custom frequency"),
])
def test_parse_frequency_rejects_malformed(raw, fragment):
    with pytest.raises(ValidationError) as exc:
        parse_frequency(raw)
    assert fragment in exc.value.message
