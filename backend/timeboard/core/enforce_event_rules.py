"""Event Rules Enforcement: validates event date and recurrence fields.

Invariants:
    - Every check is PURE: returns None or an error descriptor, never raises
    - Descriptor shape: {"status", "error_code", "field", "message"}
    - Shell converts a descriptor into EventValidationError (HTTP 400)
    - Updates are checked against merged (stored + patched) values

Design Decisions:
    - Descriptors over exceptions: same rule set serves create and update paths
    - MIN_RECURRENCE_COUNT is the single source of truth for the count floor
"""

from datetime import datetime


MIN_RECURRENCE_COUNT: int = 1


def _error(error_code: str, field: str, message: str) -> dict:
    return {
        "status": "error",
        "error_code": error_code,
        "field": field,
        "message": message,
    }


def check_end_after_start(
    start_date: datetime, end_date: datetime | None,
) -> dict | None:
    """End date may equal but never precede the start date."""
    if end_date is not None and end_date < start_date:
        return _error(
            "END_BEFORE_START", "end_date",
            "End date must be after start date",
        )
    return None


def check_recurrence_end_after_start(
    start_date: datetime, recurrence_end_date: datetime | None,
) -> dict | None:
    if recurrence_end_date is not None and recurrence_end_date < start_date:
        return _error(
            "RECURRENCE_END_BEFORE_START", "recurrence_end_date",
            "Recurrence end date must be after start date",
        )
    return None


def check_recurrence_count(recurrence_count: int | None) -> dict | None:
    if recurrence_count is not None and recurrence_count < MIN_RECURRENCE_COUNT:
        return _error(
            "INVALID_RECURRENCE_COUNT", "recurrence_count",
            f"Recurrence count must be at least {MIN_RECURRENCE_COUNT}",
        )
    return None


def validate_event_dates(
    start_date: datetime,
    end_date: datetime | None = None,
    recurrence_end_date: datetime | None = None,
    recurrence_count: int | None = None,
) -> dict | None:
    """Run all event rules in order. Returns the first failure or None."""
    for result in (
        check_end_after_start(start_date, end_date),
        check_recurrence_end_after_start(start_date, recurrence_end_date),
        check_recurrence_count(recurrence_count),
    ):
        if result is not None:
            return result
    return None
