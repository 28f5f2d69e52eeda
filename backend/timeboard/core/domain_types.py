"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - EventId wraps UUID; never use a bare UUID in domain logic
    - Recurrence patterns encoded as an Enum; no raw string matching in core/

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and store in a String column as-is
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

EventId = NewType("EventId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class RecurrenceType(str, Enum):
    """The five supported recurrence patterns. Maps to `recurrence_type` column."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
