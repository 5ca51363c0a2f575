"""Unit tests for recurrence expansion."""

import types
from datetime import date, timedelta
from itertools import islice

from models import DayOfWeek, RecurrenceSpec
from scheduler.recurrence import count_candidates, expand_recurrence


def spec(**overrides) -> RecurrenceSpec:
    fields = dict(
        start_date=date(2025, 1, 6),
        end_date=date(2025, 2, 2),
        frequency="WEEKLY",
        days_of_week=[],
        time_slots=[{"time": "10:00", "duration_minutes": 45}],
    )
    fields.update(overrides)
    return RecurrenceSpec(**fields)


def test_weekly_mondays_over_four_weeks():
    candidates = list(expand_recurrence(spec(days_of_week=["MONDAY"])))

    dates = [c.date for c in candidates]
    assert len(dates) == 4
    assert all(b - a == timedelta(days=7) for a, b in zip(dates, dates[1:]))
    assert all(DayOfWeek.from_date(d) == DayOfWeek.MONDAY for d in dates)


def test_biweekly_steps_fourteen_days():
    candidates = list(expand_recurrence(spec(frequency="BIWEEKLY", end_date=date(2025, 2, 28))))
    assert [c.date for c in candidates] == [
        date(2025, 1, 6),
        date(2025, 1, 20),
        date(2025, 2, 3),
        date(2025, 2, 17),
    ]


def test_daily_with_weekday_filter_skips_weekends():
    candidates = list(expand_recurrence(spec(
        frequency="DAILY",
        end_date=date(2025, 1, 19),
        days_of_week=["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"],
    )))
    assert len(candidates) == 10
    assert all(c.date.weekday() < 5 for c in candidates)


def test_daily_without_filter_includes_every_day():
    assert count_candidates(spec(frequency="DAILY", end_date=date(2025, 1, 12))) == 7


def test_filter_missing_start_weekday_yields_nothing_for_weekly():
    """Weekly stepping from a Monday never lands on a Tuesday."""
    assert list(expand_recurrence(spec(days_of_week=["TUESDAY"]))) == []


def test_cross_product_with_time_slots_in_order():
    candidates = list(expand_recurrence(spec(
        frequency="DAILY",
        end_date=date(2025, 1, 7),
        time_slots=[
            {"time": "10:00", "duration_minutes": 45},
            {"time": "14:00", "duration_minutes": 30},
        ],
    )))
    assert [(c.date.day, c.time, c.duration_minutes) for c in candidates] == [
        (6, "10:00", 45),
        (6, "14:00", 30),
        (7, "10:00", 45),
        (7, "14:00", 30),
    ]


def test_single_day_range():
    candidates = list(expand_recurrence(spec(end_date=date(2025, 1, 6))))
    assert len(candidates) == 1


def test_expansion_is_lazy():
    huge = spec(frequency="DAILY", end_date=date(2999, 12, 31))
    candidates = expand_recurrence(huge)

    assert isinstance(candidates, types.GeneratorType)
    first_three = list(islice(candidates, 3))
    assert [c.date.day for c in first_three] == [6, 7, 8]
    # Consumed once: continues where it stopped
    assert next(candidates).date == date(2025, 1, 9)
