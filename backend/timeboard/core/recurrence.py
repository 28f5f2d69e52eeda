"""Recurrence Engine: expands a recurrence rule into concrete event instances.

Invariants:
    - Pure and stateless: no IO, no shared mutable state, safe from any thread
    - Occurrence n is start_date advanced by n periods (anchored to the series
      start), so the end-of-month clamp never drifts: Jan 31 monthly gives
      Jan 31, Feb 29, Mar 31
    - recurrence_count counts every occurrence from start_date, including the
      ones stepped over before range_start
    - Every instance keeps the config's (end_date - start_date) duration
    - generate_instances compares full instants; occurs_on_date compares
      calendar days only (time of day ignored)

Design Decisions:
    - relativedelta for month arithmetic: it clamps to the last day of the
      target month (Jan 31 + 1 month = Feb 28/29)
    - Termination guards are logged at WARNING with a `guard` extra and return
      the best-effort result. A step that lands on start_date again or moves
      past datetime.max ends the walk
    - Both walks stop after MAX_ITERATIONS steps
    - generate_instances jumps straight to the occurrence just before
      range_start, so its ceiling bounds the window, not the series age
    - EventInstance has no all_day field: the engine never knows it, callers
      overlay it from the event record (see core/expand_events.py)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

from timeboard.core.domain_types import RecurrenceType

logger = logging.getLogger(__name__)

MAX_ITERATIONS: int = 10_000

_PERIODS: dict[RecurrenceType, relativedelta] = {
    RecurrenceType.DAILY: relativedelta(days=1),
    RecurrenceType.WEEKLY: relativedelta(days=7),
    RecurrenceType.MONTHLY: relativedelta(months=1),
    RecurrenceType.QUARTERLY: relativedelta(months=3),
}


@dataclass(frozen=True)
class RecurrenceConfig:
    """Recurrence parameters of one event, built by the caller per call."""
    start_date: datetime
    end_date: datetime | None = None
    recurrence_type: RecurrenceType | str = RecurrenceType.NONE
    recurrence_end_date: datetime | None = None
    recurrence_count: int | None = None

    @property
    def duration(self) -> timedelta | None:
        if self.end_date is None:
            return None
        return self.end_date - self.start_date


@dataclass(frozen=True)
class EventInstance:
    """One occurrence. all_day is caller-owned and deliberately absent."""
    start_date: datetime
    end_date: datetime | None


def normalize_instant(value: datetime) -> datetime:
    """Aware datetimes become naive UTC; naive ones pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _period(recurrence_type: RecurrenceType | str) -> relativedelta | None:
    try:
        return _PERIODS.get(RecurrenceType(recurrence_type))
    except ValueError:
        return None


def _advance(
    recurrence_type: RecurrenceType | str, from_date: datetime, periods: int,
) -> datetime | None:
    """from_date moved by `periods` periods, or None past datetime.max."""
    period = _period(recurrence_type)
    if period is None or periods == 0:
        return from_date
    try:
        return from_date + period * periods
    except (OverflowError, ValueError):
        logger.warning(
            "Recurrence steps past the last representable date",
            extra={
                "recurrence_type": _type_name(recurrence_type),
                "guard": "calendar_overflow",
            },
        )
        return None


def next_occurrence(
    recurrence_type: RecurrenceType | str, from_date: datetime,
) -> datetime:
    """Advance from_date by exactly one period of recurrence_type.

    none (and any unrecognized type) returns from_date unchanged. Monthly and
    quarterly steps clamp to the last day of the target month. A step past
    datetime.max also returns from_date unchanged.
    """
    advanced = _advance(recurrence_type, from_date, 1)
    return from_date if advanced is None else advanced


def _is_recurring(recurrence_type: RecurrenceType | str) -> bool:
    return recurrence_type != RecurrenceType.NONE


def _type_name(recurrence_type: RecurrenceType | str) -> str:
    return getattr(recurrence_type, "value", recurrence_type)


def _first_index_near(
    recurrence_type: RecurrenceType | str, start: datetime, range_start: datetime,
) -> int:
    """Anchored index of an occurrence at or before range_start.

    Exact for day-based periods; one period early for month-based ones,
    where the clamp makes the exact index depend on the day of month.
    """
    period = _period(recurrence_type)
    if period is None or range_start <= start:
        return 0
    if period.months:
        months_apart = (
            (range_start.year - start.year) * 12 + range_start.month - start.month
        )
        return max(0, months_apart // period.months - 1)
    return (range_start - start) // timedelta(days=period.days)


def generate_instances(
    config: RecurrenceConfig, range_start: datetime, range_end: datetime,
) -> list[EventInstance]:
    """All occurrences starting within [range_start, range_end], ascending.

    Stops at recurrence_end_date, range_end, or once recurrence_count
    occurrences (counted from start_date, not from range_start) were visited.
    Instants are compared in full; see occurs_on_date for day granularity.
    Bounded by MAX_ITERATIONS steps; hitting the ceiling returns the
    instances collected so far.
    """
    duration = config.duration

    def _instance(start: datetime) -> EventInstance:
        end = start + duration if duration is not None else None
        return EventInstance(start_date=start, end_date=end)

    if not _is_recurring(config.recurrence_type):
        if range_start <= config.start_date <= range_end:
            return [_instance(config.start_date)]
        return []

    instances: list[EventInstance] = []
    index = _first_index_near(config.recurrence_type, config.start_date, range_start)
    current = _advance(config.recurrence_type, config.start_date, index)
    steps = 0
    while current is not None:
        if config.recurrence_end_date is not None and current > config.recurrence_end_date:
            break
        if current > range_end:
            break
        if config.recurrence_count is not None and index >= config.recurrence_count:
            break
        if steps >= MAX_ITERATIONS:
            logger.warning(
                f"Instance expansion hit the {MAX_ITERATIONS}-step ceiling",
                extra={
                    "recurrence_type": _type_name(config.recurrence_type),
                    "guard": "iteration_ceiling",
                },
            )
            break

        if current >= range_start:
            instances.append(_instance(current))

        index += 1
        steps += 1
        current = _advance(config.recurrence_type, config.start_date, index)
        if current == config.start_date:
            logger.warning(
                "Recurrence does not advance, stopping expansion",
                extra={
                    "recurrence_type": _type_name(config.recurrence_type),
                    "guard": "non_advancing_step",
                },
            )
            break

    return instances


def recurrence_dates(
    config: RecurrenceConfig, range_start: datetime, range_end: datetime,
) -> list[datetime]:
    """Start dates of generate_instances for the same window."""
    return [i.start_date for i in generate_instances(config, range_start, range_end)]


def _day(value: datetime) -> date:
    return value.date()


def occurs_on_date(config: RecurrenceConfig, check_date: datetime) -> bool:
    """Whether an occurrence starts on check_date's calendar day.

    Day-granular: time of day is ignored here, unlike generate_instances.
    Bounded by MAX_ITERATIONS steps; hitting the ceiling returns False.
    """
    check_day = _day(check_date)
    start_day = _day(config.start_date)

    if not _is_recurring(config.recurrence_type):
        return start_day == check_day

    if check_day < start_day:
        return False
    if (
        config.recurrence_end_date is not None
        and check_day > _day(config.recurrence_end_date)
    ):
        return False

    current = config.start_date
    iterations = 0
    while _day(current) <= check_day:
        if iterations >= MAX_ITERATIONS:
            logger.warning(
                f"Occurrence check hit the {MAX_ITERATIONS}-step ceiling",
                extra={
                    "recurrence_type": _type_name(config.recurrence_type),
                    "guard": "iteration_ceiling",
                },
            )
            return False

        if _day(current) == check_day:
            return True

        if (
            config.recurrence_count is not None
            and iterations >= config.recurrence_count - 1
        ):
            return False

        iterations += 1
        advanced = _advance(config.recurrence_type, config.start_date, iterations)
        if advanced is None:
            return False
        if advanced <= config.start_date:
            logger.warning(
                "Recurrence does not advance, stopping occurrence check",
                extra={
                    "recurrence_type": _type_name(config.recurrence_type),
                    "guard": "non_advancing_step",
                },
            )
            return False
        current = advanced

    return False
