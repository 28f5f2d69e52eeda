"""Recurrence Engine: stepping, window expansion, count budget, day checks, guards.

Tests cover:
    - next_occurrence steps and the end-of-month clamp
    - generate_instances window containment, bounds, duration, ordering
    - recurrence_count consumed by occurrences before the window
    - occurs_on_date day granularity and consistency with generate_instances
    - non-advancing, iteration-ceiling and calendar-overflow guards terminate and log
"""

import logging
from datetime import datetime, timedelta, timezone

from timeboard.core.domain_types import RecurrenceType
from timeboard.core.recurrence import (
    MAX_ITERATIONS,
    EventInstance,
    RecurrenceConfig,
    generate_instances,
    next_occurrence,
    normalize_instant,
    occurs_on_date,
    recurrence_dates,
)

FAR_PAST = datetime(1970, 1, 1)
FAR_FUTURE = datetime(2100, 1, 1)


def _starts(instances: list[EventInstance]) -> list[datetime]:
    return [i.start_date for i in instances]


# ─── next_occurrence ─────────────────────────────────────────────

def test_daily_adds_one_day():
    d = datetime(2024, 2, 28, 14, 15)
    assert next_occurrence(RecurrenceType.DAILY, d) == d + timedelta(days=1)


def test_weekly_adds_seven_days():
    d = datetime(2024, 12, 28)
    assert next_occurrence(RecurrenceType.WEEKLY, d) == datetime(2025, 1, 4)


def test_none_returns_same_date():
    d = datetime(2024, 5, 10, 8, 0)
    assert next_occurrence(RecurrenceType.NONE, d) == d


def test_unknown_type_returns_same_date():
    d = datetime(2024, 5, 10)
    assert next_occurrence("fortnightly", d) == d


def test_accepts_plain_string_types():
    assert next_occurrence("weekly", datetime(2024, 3, 1)) == datetime(2024, 3, 8)


def test_monthly_clamps_to_leap_february():
    assert next_occurrence(RecurrenceType.MONTHLY, datetime(2024, 1, 31)) == datetime(2024, 2, 29)


def test_monthly_clamps_to_common_february():
    assert next_occurrence(RecurrenceType.MONTHLY, datetime(2023, 1, 31)) == datetime(2023, 2, 28)


def test_monthly_keeps_day_when_it_exists():
    assert next_occurrence(RecurrenceType.MONTHLY, datetime(2024, 1, 15)) == datetime(2024, 2, 15)


def test_monthly_crosses_year_boundary():
    assert next_occurrence(RecurrenceType.MONTHLY, datetime(2024, 12, 31)) == datetime(2025, 1, 31)


def test_quarterly_clamps_to_april_30():
    assert next_occurrence(RecurrenceType.QUARTERLY, datetime(2024, 1, 31)) == datetime(2024, 4, 30)


def test_step_preserves_time_of_day():
    d = datetime(2024, 1, 31, 9, 30, 15)
    assert next_occurrence(RecurrenceType.MONTHLY, d) == datetime(2024, 2, 29, 9, 30, 15)


def test_single_step_from_clamped_date_keeps_clamped_day():
    # one step only knows its input; series anchoring happens in generate_instances
    assert next_occurrence(RecurrenceType.MONTHLY, datetime(2024, 2, 29)) == datetime(2024, 3, 29)


# ─── generate_instances: scenarios ───────────────────────────────

def test_weekly_series_inside_window():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1), recurrence_type=RecurrenceType.WEEKLY,
    )
    instances = generate_instances(config, datetime(2024, 3, 1), datetime(2024, 3, 22))
    assert _starts(instances) == [
        datetime(2024, 3, 1), datetime(2024, 3, 8),
        datetime(2024, 3, 15), datetime(2024, 3, 22),
    ]


def test_monthly_count_with_end_of_month_start():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 31),
        recurrence_type=RecurrenceType.MONTHLY,
        recurrence_count=3,
    )
    instances = generate_instances(config, datetime(2024, 1, 1), datetime(2024, 12, 31))
    assert _starts(instances) == [
        datetime(2024, 1, 31), datetime(2024, 2, 29), datetime(2024, 3, 31),
    ]


def test_single_event_outside_window_is_empty():
    config = RecurrenceConfig(start_date=datetime(2024, 5, 10))
    assert generate_instances(config, datetime(2024, 5, 11), datetime(2024, 5, 20)) == []


def test_quarterly_stops_at_recurrence_end_date():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 31),
        recurrence_type=RecurrenceType.QUARTERLY,
        recurrence_end_date=datetime(2024, 6, 30),
    )
    instances = generate_instances(config, FAR_PAST, FAR_FUTURE)
    assert _starts(instances) == [datetime(2024, 1, 31), datetime(2024, 4, 30)]


def test_quarterly_series_returns_to_day_31():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 31), recurrence_type=RecurrenceType.QUARTERLY,
    )
    instances = generate_instances(config, FAR_PAST, datetime(2024, 12, 31))
    assert _starts(instances) == [
        datetime(2024, 1, 31), datetime(2024, 4, 30),
        datetime(2024, 7, 31), datetime(2024, 10, 31),
    ]


# ─── generate_instances: bounds ──────────────────────────────────

def test_single_event_inside_window():
    config = RecurrenceConfig(
        start_date=datetime(2024, 5, 10, 9), end_date=datetime(2024, 5, 10, 10),
    )
    instances = generate_instances(config, datetime(2024, 5, 1), datetime(2024, 5, 31))
    assert instances == [
        EventInstance(start_date=datetime(2024, 5, 10, 9), end_date=datetime(2024, 5, 10, 10)),
    ]


def test_single_event_far_outside_window_returns_immediately():
    config = RecurrenceConfig(start_date=datetime(1900, 1, 1))
    assert generate_instances(config, datetime(2024, 1, 1), datetime(2024, 12, 31)) == []


def test_window_bounds_are_inclusive():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1), recurrence_type=RecurrenceType.DAILY,
    )
    instances = generate_instances(config, datetime(2024, 1, 5), datetime(2024, 1, 7))
    assert _starts(instances) == [
        datetime(2024, 1, 5), datetime(2024, 1, 6), datetime(2024, 1, 7),
    ]


def test_recurrence_end_date_is_inclusive():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1),
        recurrence_type=RecurrenceType.DAILY,
        recurrence_end_date=datetime(2024, 1, 3),
    )
    assert len(generate_instances(config, FAR_PAST, FAR_FUTURE)) == 3


def test_window_before_series_start_is_empty():
    config = RecurrenceConfig(
        start_date=datetime(2024, 6, 1), recurrence_type=RecurrenceType.DAILY,
    )
    assert generate_instances(config, datetime(2024, 1, 1), datetime(2024, 5, 31)) == []


def test_instances_keep_original_duration():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1, 9, 0),
        end_date=datetime(2024, 3, 1, 10, 30),
        recurrence_type=RecurrenceType.WEEKLY,
    )
    instances = generate_instances(config, FAR_PAST, datetime(2024, 3, 31))
    assert len(instances) == 5
    for instance in instances:
        assert instance.end_date - instance.start_date == timedelta(hours=1, minutes=30)


def test_instances_without_end_date_have_none():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1), recurrence_type=RecurrenceType.DAILY,
    )
    instances = generate_instances(config, FAR_PAST, datetime(2024, 3, 3))
    assert all(i.end_date is None for i in instances)


def test_instances_have_no_all_day_field():
    instance = EventInstance(start_date=datetime(2024, 1, 1), end_date=None)
    assert not hasattr(instance, "all_day")


def test_instances_are_ascending_and_inside_window():
    window_start, window_end = datetime(2024, 2, 10), datetime(2024, 9, 20, 12)
    for recurrence_type in (
        RecurrenceType.DAILY, RecurrenceType.WEEKLY,
        RecurrenceType.MONTHLY, RecurrenceType.QUARTERLY,
    ):
        config = RecurrenceConfig(
            start_date=datetime(2023, 11, 30, 12), recurrence_type=recurrence_type,
        )
        starts = _starts(generate_instances(config, window_start, window_end))
        assert starts, recurrence_type
        assert starts == sorted(starts)
        assert all(window_start <= s <= window_end for s in starts)


def test_generation_is_restartable():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 31), recurrence_type=RecurrenceType.MONTHLY,
        recurrence_count=6,
    )
    first = generate_instances(config, FAR_PAST, FAR_FUTURE)
    second = generate_instances(config, FAR_PAST, FAR_FUTURE)
    assert first == second


# ─── generate_instances: count budget ────────────────────────────

def test_count_limits_total_instances():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1), recurrence_type=RecurrenceType.DAILY,
        recurrence_count=10,
    )
    assert len(generate_instances(config, FAR_PAST, FAR_FUTURE)) == 10


def test_count_includes_occurrences_before_window():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1), recurrence_type=RecurrenceType.DAILY,
        recurrence_count=5,
    )
    instances = generate_instances(config, datetime(2024, 1, 3), datetime(2024, 1, 31))
    assert _starts(instances) == [
        datetime(2024, 1, 3), datetime(2024, 1, 4), datetime(2024, 1, 5),
    ]


def test_count_fully_spent_before_window_is_empty():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1), recurrence_type=RecurrenceType.WEEKLY,
        recurrence_count=2,
    )
    assert generate_instances(config, datetime(2024, 2, 1), datetime(2024, 3, 1)) == []


def test_count_and_end_date_earliest_bound_wins():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1), recurrence_type=RecurrenceType.DAILY,
        recurrence_count=10, recurrence_end_date=datetime(2024, 1, 4),
    )
    assert len(generate_instances(config, FAR_PAST, FAR_FUTURE)) == 4


# ─── recurrence_dates ────────────────────────────────────────────

def test_recurrence_dates_match_instance_starts():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 1, 1),
        recurrence_type=RecurrenceType.WEEKLY,
    )
    window = (datetime(2024, 3, 1), datetime(2024, 3, 22))
    assert recurrence_dates(config, *window) == _starts(generate_instances(config, *window))


# ─── occurs_on_date ──────────────────────────────────────────────

def test_single_event_occurs_on_its_day_regardless_of_time():
    config = RecurrenceConfig(start_date=datetime(2024, 5, 10, 9))
    assert occurs_on_date(config, datetime(2024, 5, 10, 23, 59))
    assert not occurs_on_date(config, datetime(2024, 5, 11))


def test_recurring_event_not_before_start():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1), recurrence_type=RecurrenceType.DAILY,
    )
    assert not occurs_on_date(config, datetime(2024, 2, 29))


def test_recurring_event_not_after_recurrence_end():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1), recurrence_type=RecurrenceType.DAILY,
        recurrence_end_date=datetime(2024, 3, 5, 8),
    )
    assert occurs_on_date(config, datetime(2024, 3, 5))
    assert not occurs_on_date(config, datetime(2024, 3, 6))


def test_weekly_matches_only_on_its_weekday():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1, 18), recurrence_type=RecurrenceType.WEEKLY,
    )
    assert occurs_on_date(config, datetime(2024, 3, 15))
    assert not occurs_on_date(config, datetime(2024, 3, 14))


def test_monthly_matches_clamped_and_restored_days():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 31), recurrence_type=RecurrenceType.MONTHLY,
    )
    assert occurs_on_date(config, datetime(2024, 2, 29))
    assert occurs_on_date(config, datetime(2024, 3, 31))
    assert not occurs_on_date(config, datetime(2024, 3, 29))


def test_count_limits_occurrence_check():
    config = RecurrenceConfig(
        start_date=datetime(2024, 1, 1), recurrence_type=RecurrenceType.DAILY,
        recurrence_count=3,
    )
    assert occurs_on_date(config, datetime(2024, 1, 3))
    assert not occurs_on_date(config, datetime(2024, 1, 4))


def test_day_granularity_differs_from_instant_generation():
    config = RecurrenceConfig(
        start_date=datetime(2024, 3, 1, 9), recurrence_type=RecurrenceType.DAILY,
    )
    midnight = datetime(2024, 3, 2)
    assert occurs_on_date(config, midnight)
    assert generate_instances(config, midnight, midnight) == []


def test_occurs_on_date_agrees_with_single_day_generation():
    configs = [
        RecurrenceConfig(start_date=datetime(2024, 1, 31)),
        RecurrenceConfig(
            start_date=datetime(2024, 1, 31), recurrence_type=RecurrenceType.MONTHLY,
        ),
        RecurrenceConfig(
            start_date=datetime(2024, 1, 31), recurrence_type=RecurrenceType.QUARTERLY,
            recurrence_end_date=datetime(2024, 8, 1),
        ),
        RecurrenceConfig(
            start_date=datetime(2024, 1, 3), recurrence_type=RecurrenceType.WEEKLY,
            recurrence_count=5,
        ),
        RecurrenceConfig(
            start_date=datetime(2024, 1, 10), recurrence_type=RecurrenceType.DAILY,
            recurrence_count=20,
        ),
    ]
    day = datetime(2024, 1, 1)
    while day <= datetime(2024, 12, 31):
        for config in configs:
            generated = len(generate_instances(config, day, day)) > 0
            assert occurs_on_date(config, day) == generated, (config, day)
        day += timedelta(days=1)


# ─── Guards ──────────────────────────────────────────────────────

def test_non_advancing_type_stops_generation(caplog):
    config = RecurrenceConfig(start_date=datetime(2024, 3, 1), recurrence_type="fortnightly")
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        instances = generate_instances(config, FAR_PAST, FAR_FUTURE)
    assert _starts(instances) == [datetime(2024, 3, 1)]
    assert any(getattr(r, "guard", None) == "non_advancing_step" for r in caplog.records)


def test_non_advancing_type_stops_occurrence_check(caplog):
    config = RecurrenceConfig(start_date=datetime(2024, 3, 1), recurrence_type="fortnightly")
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        assert not occurs_on_date(config, datetime(2024, 3, 15))
    assert any(getattr(r, "guard", None) == "non_advancing_step" for r in caplog.records)


def test_occurrence_check_within_ceiling_still_matches():
    start = datetime(2000, 1, 1)
    config = RecurrenceConfig(start_date=start, recurrence_type=RecurrenceType.DAILY)
    assert occurs_on_date(config, start + timedelta(days=MAX_ITERATIONS - 1))


def test_occurrence_check_stops_at_iteration_ceiling(caplog):
    start = datetime(2000, 1, 1)
    config = RecurrenceConfig(start_date=start, recurrence_type=RecurrenceType.DAILY)
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        assert not occurs_on_date(config, start + timedelta(days=MAX_ITERATIONS + 5))
    assert any(getattr(r, "guard", None) == "iteration_ceiling" for r in caplog.records)


def test_generation_stops_at_iteration_ceiling(caplog):
    start = datetime(2000, 1, 1)
    config = RecurrenceConfig(start_date=start, recurrence_type=RecurrenceType.DAILY)
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        instances = generate_instances(config, start, datetime.max)
    assert len(instances) == MAX_ITERATIONS
    assert instances[-1].start_date == start + timedelta(days=MAX_ITERATIONS - 1)
    assert any(getattr(r, "guard", None) == "iteration_ceiling" for r in caplog.records)


def test_old_series_expands_late_window_without_ceiling(caplog):
    config = RecurrenceConfig(
        start_date=datetime(1970, 1, 1, 8), recurrence_type=RecurrenceType.DAILY,
    )
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        instances = generate_instances(config, datetime(2024, 3, 1), datetime(2024, 3, 3, 23))
    assert _starts(instances) == [
        datetime(2024, 3, 1, 8), datetime(2024, 3, 2, 8), datetime(2024, 3, 3, 8),
    ]
    assert not caplog.records


def test_old_monthly_series_keeps_anchor_after_skipping_ahead():
    config = RecurrenceConfig(
        start_date=datetime(1990, 1, 31), recurrence_type=RecurrenceType.MONTHLY,
    )
    instances = generate_instances(config, datetime(2024, 2, 1), datetime(2024, 4, 30))
    assert _starts(instances) == [
        datetime(2024, 2, 29), datetime(2024, 3, 31), datetime(2024, 4, 30),
    ]


def test_skipped_occurrences_still_spend_count_after_skipping_ahead():
    config = RecurrenceConfig(
        start_date=datetime(2000, 1, 1), recurrence_type=RecurrenceType.WEEKLY,
        recurrence_count=3,
    )
    assert generate_instances(config, datetime(2024, 1, 1), datetime(2024, 12, 31)) == []


# ─── Calendar edge ───────────────────────────────────────────────

def test_generation_ends_at_last_representable_year(caplog):
    config = RecurrenceConfig(
        start_date=datetime(9999, 1, 1), recurrence_type=RecurrenceType.MONTHLY,
    )
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        instances = generate_instances(config, datetime(9999, 1, 1), datetime.max)
    assert len(instances) == 12
    assert instances[-1].start_date == datetime(9999, 12, 1)
    assert any(getattr(r, "guard", None) == "calendar_overflow" for r in caplog.records)


def test_daily_generation_ends_on_last_day():
    config = RecurrenceConfig(
        start_date=datetime(9999, 12, 29, 12), recurrence_type=RecurrenceType.DAILY,
    )
    instances = generate_instances(config, FAR_PAST, datetime.max)
    assert _starts(instances) == [
        datetime(9999, 12, 29, 12), datetime(9999, 12, 30, 12), datetime(9999, 12, 31, 12),
    ]


def test_occurrence_check_past_last_year_is_false(caplog):
    config = RecurrenceConfig(
        start_date=datetime(9999, 11, 1), recurrence_type=RecurrenceType.QUARTERLY,
    )
    with caplog.at_level(logging.WARNING, logger="timeboard.core.recurrence"):
        assert not occurs_on_date(config, datetime(9999, 12, 31))
    assert any(getattr(r, "guard", None) == "calendar_overflow" for r in caplog.records)


def test_next_occurrence_past_last_year_keeps_date():
    last = datetime(9999, 12, 15)
    assert next_occurrence(RecurrenceType.MONTHLY, last) == last
    assert next_occurrence(RecurrenceType.DAILY, datetime(9999, 12, 31)) == datetime(9999, 12, 31)


# ─── normalize_instant ───────────────────────────────────────────

def test_normalize_converts_aware_to_naive_utc():
    aware = datetime(2024, 3, 1, 9, 0, tzinfo=timezone(timedelta(hours=2)))
    assert normalize_instant(aware) == datetime(2024, 3, 1, 7, 0)


def test_normalize_keeps_naive_values():
    naive = datetime(2024, 3, 1, 9, 0)
    assert normalize_instant(naive) is naive
