"""Event Schemas: Pydantic models with field-level validation for API boundaries.

Invariants:
    - EventCreate.title: 1-255 chars, stripped, non-empty
    - All datetimes normalized to naive instants (aware input converted to UTC)
    - meeting_link must be an absolute http(s) URL
    - EventUpdate is partial: only fields the client sent are applied, and
      non-nullable columns reject an explicit null
    - Date ordering and recurrence_count rules live in core/enforce_event_rules.py
      (they must also hold for merged update values)

Design Decisions:
    - RecurrenceType enum for recurrence_type: Pydantic rejects unknown patterns
    - OccurrenceResponse carries all_day from the event, not from the engine
"""

from datetime import datetime
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from timeboard.core.domain_types import RecurrenceType
from timeboard.core.recurrence import normalize_instant


_DATE_FIELDS = ("start_date", "end_date", "recurrence_end_date")
_NON_NULLABLE = ("title", "start_date", "all_day", "recurrence_type")


def _check_meeting_link(v: str | None) -> str | None:
    if v is None or v == "":
        return None
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid meeting link format")
    return v


class EventCreate(BaseModel):
    """Event creation: validates shape, normalizes dates."""
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10_000)
    start_date: datetime
    end_date: datetime | None = None
    all_day: bool = False
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_end_date: datetime | None = None
    recurrence_count: int | None = None
    meeting_link: str | None = Field(None, max_length=2048)
    user_id: str = Field(min_length=1, max_length=64)
    customer_id: str | None = Field(None, max_length=64)
    project_id: str | None = Field(None, max_length=64)
    task_id: str | None = Field(None, max_length=64)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @field_validator(*_DATE_FIELDS)
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return normalize_instant(v) if v is not None else None

    @field_validator("meeting_link")
    @classmethod
    def validate_meeting_link(cls, v: str | None) -> str | None:
        return _check_meeting_link(v)


class EventUpdate(BaseModel):
    """Partial event update: every field optional."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10_000)
    start_date: datetime | None = None
    end_date: datetime | None = None
    all_day: bool | None = None
    recurrence_type: RecurrenceType | None = None
    recurrence_end_date: datetime | None = None
    recurrence_count: int | None = None
    meeting_link: str | None = Field(None, max_length=2048)
    customer_id: str | None = Field(None, max_length=64)
    project_id: str | None = Field(None, max_length=64)
    task_id: str | None = Field(None, max_length=64)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @field_validator(*_DATE_FIELDS)
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return normalize_instant(v) if v is not None else None

    @field_validator("meeting_link")
    @classmethod
    def validate_meeting_link(cls, v: str | None) -> str | None:
        return _check_meeting_link(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in _NON_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the client actually sent, ready to apply to the ORM row."""
        data = self.model_dump(exclude_unset=True)
        if "recurrence_type" in data:
            data["recurrence_type"] = RecurrenceType(data["recurrence_type"]).value
        for name in ("customer_id", "project_id", "task_id"):
            if name in data and not data[name]:
                data[name] = None
        return data


class EventResponse(BaseModel):
    """Stored event as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    all_day: bool
    recurrence_type: RecurrenceType
    recurrence_end_date: datetime | None = None
    recurrence_count: int | None = None
    meeting_link: str | None = None
    user_id: str
    customer_id: str | None = None
    project_id: str | None = None
    task_id: str | None = None


class CalendarEntry(EventResponse):
    """An event, or one occurrence of a recurring event, in a range listing."""
    is_recurring_instance: bool = False
    original_event_id: UUID | None = None


class OccurrenceResponse(BaseModel):
    """One occurrence of a single event."""
    start_date: datetime
    end_date: datetime | None = None
    all_day: bool


class OccursOnResponse(BaseModel):
    event_id: UUID
    date: datetime
    occurs: bool
