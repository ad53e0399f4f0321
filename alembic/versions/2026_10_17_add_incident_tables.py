"""Add incidents, incident_messages and incident_reviews tables

Revision ID: add_incident_tables
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "add_incident_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "incidents",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("channel_id", sa.String(64), nullable=False),
        sa.Column("slack_thread_ts", sa.String(32), nullable=False),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("severity_level", sa.Integer(), nullable=False),
        sa.Column(
            "status", sa.String(16), nullable=False, server_default=sa.text("'open'")
        ),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column(
            "detected_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("impact_users", sa.Integer(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column(
            "llm_analysis", postgresql.JSONB(astext_type=sa.Text()), nullable=True
        ),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "channel_id", "slack_thread_ts", name="uq_incidents_channel_thread"
        ),
        sa.CheckConstraint(
            "severity_level BETWEEN 1 AND 4", name="ck_incidents_severity_level"
        ),
    )
    op.create_index("ix_incidents_status", "incidents", ["status"], unique=False)
    op.create_index(
        "ix_incidents_detected_at", "incidents", ["detected_at"], unique=False
    )

    op.create_table(
        "incident_messages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("incident_id", sa.UUID(), nullable=False),
        sa.Column("slack_ts", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_name", sa.String(256), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.ForeignKeyConstraint(
            ["incident_id"], ["incidents.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slack_ts"),
    )
    op.create_index(
        "ix_incident_messages_incident_id",
        "incident_messages",
        ["incident_id"],
        unique=False,
    )

    op.create_table(
        "incident_reviews",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("incident_id", sa.UUID(), nullable=False),
        sa.Column("reviewed_by", sa.String(256), nullable=True),
        sa.Column("review_status", sa.String(32), nullable=False),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column(
            "reviewed_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.ForeignKeyConstraint(
            ["incident_id"], ["incidents.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_incident_reviews_incident_id",
        "incident_reviews",
        ["incident_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_incident_reviews_incident_id", table_name="incident_reviews")
    op.drop_table("incident_reviews")
    op.drop_index("ix_incident_messages_incident_id", table_name="incident_messages")
    op.drop_table("incident_messages")
    op.drop_index("ix_incidents_detected_at", table_name="incidents")
    op.drop_index("ix_incidents_status", table_name="incidents")
    op.drop_table("incidents")
