"""Event ORM: persists calendar events and their recurrence rule.

Invariants:
    - id is UUID primary key
    - title, start_date, user_id are non-nullable
    - recurrence_type is a RecurrenceType value, default "none"
    - Event dates are naive instants (normalized at the schema boundary)
    - user/customer/project/task ids are opaque references (no FK: those
      resources live outside this service)

Design Decisions:
    - Occurrences are never persisted: expanded on read by core/expand_events.py
    - Index on start_date: range listing filters and orders by it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from timeboard.core.domain_types import RecurrenceType
from timeboard.db.base import Base


class Event(Base):
    """Calendar event. One row per series, not per occurrence."""
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True,
    )
    end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    all_day: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    recurrence_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RecurrenceType.NONE.value,
    )
    recurrence_end_date: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True,
    )
    recurrence_count: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    meeting_link: Mapped[str | None] = mapped_column(
        String(2048), nullable=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True,
    )
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    project_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    task_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
