"""Event Expansion: maps stored events to calendar entries for a query window.

Invariants:
    - Pure: takes event objects and a window, returns plain dicts (no IO)
    - Single events are kept iff their start lies inside the window
    - Recurring events are replaced by one entry per generated instance,
      marked is_recurring_instance=True with original_event_id set
    - all_day, title and ids come from the event record, never from the engine
    - Output is ordered by start_date (stable for ties)

Design Decisions:
    - Open window bounds default to the epoch and 2100-01-01
    - Entry dicts over Pydantic models: schemas/event.py validates at the boundary
"""

from datetime import datetime

from timeboard.core.domain_types import RecurrenceType
from timeboard.core.recurrence import (
    EventInstance, RecurrenceConfig, generate_instances, normalize_instant,
)
from timeboard.core.repository_protocols import EventLike


DEFAULT_RANGE_START = datetime(1970, 1, 1)
DEFAULT_RANGE_END = datetime(2100, 1, 1)


def resolve_range(
    start: datetime | None, end: datetime | None,
) -> tuple[datetime, datetime]:
    """Fill open window bounds with the defaults and normalize both."""
    range_start = normalize_instant(start) if start else DEFAULT_RANGE_START
    range_end = normalize_instant(end) if end else DEFAULT_RANGE_END
    return range_start, range_end


def config_from_event(event: EventLike) -> RecurrenceConfig:
    return RecurrenceConfig(
        start_date=event.start_date,
        end_date=event.end_date,
        recurrence_type=event.recurrence_type,
        recurrence_end_date=event.recurrence_end_date,
        recurrence_count=event.recurrence_count,
    )


def event_to_dict(event: EventLike) -> dict:
    """Flatten an event into the calendar entry shape."""
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start_date": event.start_date,
        "end_date": event.end_date,
        "all_day": event.all_day,
        "recurrence_type": event.recurrence_type,
        "recurrence_end_date": event.recurrence_end_date,
        "recurrence_count": event.recurrence_count,
        "meeting_link": event.meeting_link,
        "user_id": event.user_id,
        "customer_id": event.customer_id,
        "project_id": event.project_id,
        "task_id": event.task_id,
        "is_recurring_instance": False,
        "original_event_id": None,
    }


def instance_to_entry(event: EventLike, instance: EventInstance) -> dict:
    """Overlay one engine instance on its event record."""
    entry = event_to_dict(event)
    entry["start_date"] = instance.start_date
    entry["end_date"] = instance.end_date
    entry["is_recurring_instance"] = True
    entry["original_event_id"] = event.id
    return entry


def expand_events(
    events: list[EventLike], range_start: datetime, range_end: datetime,
) -> list[dict]:
    """Expand events into calendar entries for [range_start, range_end]."""
    entries: list[dict] = []
    for event in events:
        if event.recurrence_type == RecurrenceType.NONE:
            if range_start <= event.start_date <= range_end:
                entries.append(event_to_dict(event))
            continue

        instances = generate_instances(
            config_from_event(event), range_start, range_end,
        )
        entries.extend(instance_to_entry(event, i) for i in instances)

    entries.sort(key=lambda e: e["start_date"])
    return entries
