"""Create events table with recurrence columns.

Revision ID: 001_create_events
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_create_events"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_date", sa.DateTime, nullable=False),
        sa.Column("end_date", sa.DateTime, nullable=True),
        sa.Column("all_day", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("recurrence_type", sa.String(20), nullable=False, server_default="none"),
        sa.Column("recurrence_end_date", sa.DateTime, nullable=True),
        sa.Column("recurrence_count", sa.Integer, nullable=True),
        sa.Column("meeting_link", sa.String(2048), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=True),
        sa.Column("project_id", sa.String(64), nullable=True),
        sa.Column("task_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "recurrence_count IS NULL OR recurrence_count >= 1",
            name="ck_events_recurrence_count_positive",
        ),
    )
    op.create_index("ix_events_start_date", "events", ["start_date"])
    op.create_index("ix_events_user_id", "events", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_events_user_id", table_name="events")
    op.drop_index("ix_events_start_date", table_name="events")
    op.drop_table("events")
