"""Core temporal schema: entities, event types, events, participations.

Revision ID: 0001_core_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_core_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # Entities
    # -----------------------------------------------------------------------
    op.create_table(
        "entities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("properties", postgresql.JSONB(), nullable=False, server_default="{}"),
        *_timestamps(),
        sa.CheckConstraint("entity_type ~ '^[a-z_]+$'", name="ck_entities_entity_type_format"),
    )
    op.create_index("ix_entities_entity_type", "entities", ["entity_type"])
    op.create_index("ix_entities_properties_gin", "entities", ["properties"], postgresql_using="gin")

    # -----------------------------------------------------------------------
    # Event types
    # -----------------------------------------------------------------------
    op.create_table(
        "event_types",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("can_nest", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("can_have_children", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("requires_participation", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("property_schema", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("rules", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_event_types_is_active", "event_types", ["is_active"])

    # -----------------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------------
    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_type_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("event_types.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "parent_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="draft"),
        sa.Column("properties", postgresql.JSONB(), nullable=False, server_default="{}"),
        *_timestamps(),
        sa.CheckConstraint("end_time IS NULL OR end_time > start_time", name="ck_events_end_after_start"),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'completed', 'cancelled', 'ended')",
            name="ck_events_status",
        ),
    )
    op.create_index("ix_events_event_type_id_start_time", "events", ["event_type_id", "start_time"])
    op.create_index("ix_events_parent_id", "events", ["parent_id"])
    op.create_index("ix_events_start_time_end_time", "events", ["start_time", "end_time"])
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_properties_gin", "events", ["properties"], postgresql_using="gin")

    # -----------------------------------------------------------------------
    # Participations
    # -----------------------------------------------------------------------
    op.create_table(
        "participations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "participant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("entities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("participation_type", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("properties", postgresql.JSONB(), nullable=False, server_default="{}"),
        *_timestamps(),
        sa.UniqueConstraint(
            "participant_id",
            "event_id",
            "participation_type",
            name="uq_participations_participant_event_type",
        ),
    )
    op.create_index("ix_participations_participant_id", "participations", ["participant_id"])
    op.create_index("ix_participations_event_id", "participations", ["event_id"])
    op.create_index("ix_participations_participation_type", "participations", ["participation_type"])


def downgrade() -> None:
    op.drop_table("participations")
    op.drop_table("events")
    op.drop_table("event_types")
    op.drop_table("entities")
