"""Boundary Protocols: contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Shell objects (ORM rows, test doubles) reach core through these types

Design Decisions:
    - Protocol over ABC: structural subtyping, the ORM model needs no base class
"""

from datetime import datetime
from typing import Protocol

from timeboard.core.domain_types import EventId


class EventLike(Protocol):
    """Structural contract for Event objects passed to core/expand_events.py.

    Avoids coupling core to the ORM model while giving mypy
    real type information (unlike Any).
    """
    id: EventId
    title: str
    description: str | None
    start_date: datetime
    end_date: datetime | None
    all_day: bool
    recurrence_type: str
    recurrence_end_date: datetime | None
    recurrence_count: int | None
    meeting_link: str | None
    user_id: str
    customer_id: str | None
    project_id: str | None
    task_id: str | None
