"""Events: CRUD, range listing with recurrence expansion, and occurrence queries.

Invariants:
    - Request shapes validated by Pydantic (schemas/event.py) before the handler runs
    - Date/recurrence rules checked by core/enforce_event_rules.py; on update they
      run against the merged stored + patched values
    - Recurring events are expanded on read (core/expand_events.py); occurrences
      are never stored
    - Range listing pre-filters candidates in SQL, the engine decides the rest

Design Decisions:
    - Handlers talk to the AsyncSession directly: there is no logic here beyond
      query building, the pure core does the date math
    - Missing events raise ResourceNotFoundError; the global handler renders the 404
"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeboard.core.domain_types import EventId, RecurrenceType
from timeboard.core.enforce_event_rules import validate_event_dates
from timeboard.core.errors import (
    ErrorContext, EventValidationError, ResourceNotFoundError,
)
from timeboard.core.expand_events import (
    config_from_event, event_to_dict, expand_events, resolve_range,
)
from timeboard.core.recurrence import (
    generate_instances, normalize_instant, occurs_on_date,
)
from timeboard.infrastructure.database import get_db
from timeboard.models.event import Event
from timeboard.schemas.event import (
    CalendarEntry, EventCreate, EventResponse, EventUpdate,
    OccurrenceResponse, OccursOnResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])


async def get_event_or_404(event_id: EventId, db: AsyncSession) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise ResourceNotFoundError(
            "Event", str(event_id), ErrorContext(event_id=str(event_id)),
        )
    return event


def _raise_on_rule_violation(
    start_date: datetime,
    end_date: datetime | None,
    recurrence_end_date: datetime | None,
    recurrence_count: int | None,
    event_id: EventId | None = None,
) -> None:
    violation = validate_event_dates(
        start_date, end_date, recurrence_end_date, recurrence_count,
    )
    if violation:
        raise EventValidationError.from_descriptor(
            violation,
            ErrorContext(event_id=str(event_id) if event_id else None),
        )


def _window_filter(range_start: datetime, range_end: datetime):
    """Events that can have an occurrence inside the window."""
    return or_(
        and_(
            Event.recurrence_type == RecurrenceType.NONE.value,
            Event.start_date >= range_start,
            Event.start_date <= range_end,
        ),
        and_(
            Event.recurrence_type != RecurrenceType.NONE.value,
            Event.start_date <= range_end,
            or_(
                Event.recurrence_end_date.is_(None),
                Event.recurrence_end_date >= range_start,
            ),
        ),
    )


@router.get("", response_model=list[CalendarEntry])
async def list_events(
    user_id: str | None = Query(None),
    customer_id: str | None = Query(None),
    project_id: str | None = Query(None),
    task_id: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List events; with a date bound, recurring events are expanded."""
    query = select(Event).order_by(Event.start_date.asc())
    for column, value in (
        (Event.user_id, user_id),
        (Event.customer_id, customer_id),
        (Event.project_id, project_id),
        (Event.task_id, task_id),
    ):
        if value:
            query = query.where(column == value)

    windowed = start_date is not None or end_date is not None
    if windowed:
        range_start, range_end = resolve_range(start_date, end_date)
        query = query.where(_window_filter(range_start, range_end))

    result = await db.execute(query)
    events = list(result.scalars().all())

    if windowed:
        return expand_events(events, range_start, range_end)
    return [event_to_dict(e) for e in events]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    return await get_event_or_404(EventId(event_id), db)


@router.post(
    "", response_model=EventResponse, status_code=status.HTTP_201_CREATED,
)
async def create_event(body: EventCreate, db: AsyncSession = Depends(get_db)):
    """Create an event after checking its date and recurrence rules."""
    _raise_on_rule_violation(
        body.start_date, body.end_date,
        body.recurrence_end_date, body.recurrence_count,
    )
    data = body.model_dump()
    data["recurrence_type"] = body.recurrence_type.value
    event = Event(**data)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info(
        f"Event created: {event.title}",
        extra={"event_id": event.id, "recurrence_type": event.recurrence_type},
    )
    return event


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID, body: EventUpdate, db: AsyncSession = Depends(get_db),
):
    """Apply the fields the client sent; rules re-checked on merged values."""
    event = await get_event_or_404(EventId(event_id), db)
    changes = body.changes()

    def merged(name: str):
        return changes[name] if name in changes else getattr(event, name)

    _raise_on_rule_violation(
        merged("start_date"), merged("end_date"),
        merged("recurrence_end_date"), merged("recurrence_count"),
        EventId(event_id),
    )
    for name, value in changes.items():
        setattr(event, name, value)
    await db.commit()
    await db.refresh(event)
    logger.info("Event updated", extra={"event_id": event.id})
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    event = await get_event_or_404(EventId(event_id), db)
    await db.delete(event)
    await db.commit()
    logger.info("Event deleted", extra={"event_id": event_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{event_id}/occurrences", response_model=list[OccurrenceResponse],
)
async def list_occurrences(
    event_id: UUID,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Occurrences of one event inside the window (open bounds default)."""
    event = await get_event_or_404(EventId(event_id), db)
    range_start, range_end = resolve_range(start_date, end_date)
    instances = generate_instances(
        config_from_event(event), range_start, range_end,
    )
    return [
        OccurrenceResponse(
            start_date=i.start_date, end_date=i.end_date, all_day=event.all_day,
        )
        for i in instances
    ]


@router.get("/{event_id}/occurs-on", response_model=OccursOnResponse)
async def check_occurs_on(
    event_id: UUID,
    date: datetime = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Whether the event has an occurrence on the given calendar day."""
    event = await get_event_or_404(EventId(event_id), db)
    check_date = normalize_instant(date)
    return OccursOnResponse(
        event_id=event.id,
        date=check_date,
        occurs=occurs_on_date(config_from_event(event), check_date),
    )
