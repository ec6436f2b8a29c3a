"""Create submissions and notifications tables

Revision ID: 001
Revises: None
Create Date: 2024-03-01 00:00:00.000000+00:00

What:  Initial schema: the submission store and the notification inbox.
How:   Generic types (sa.Uuid, sa.JSON) so the same migration runs on
       PostgreSQL and on SQLite for local development.

Rollback: downgrade() drops both tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "submissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "resource_type",
            sa.String(30),
            nullable=False,
            comment="gallery, story, photographer, category, city",
        ),
        sa.Column(
            "owner_id",
            sa.String(64),
            nullable=False,
            comment="Owning actor: photographer id or 'admin'",
        ),
        sa.Column("owner_name", sa.String(255), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(32), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'approved'"),
            comment="pending, approved, rejected, suspended, deleted",
        ),
        sa.Column(
            "show_on_home",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_submissions_email", "submissions", ["email"])
    op.create_index("ix_submissions_mobile", "submissions", ["mobile"])
    op.create_index("idx_submissions_status_type", "submissions", ["status", "resource_type"])
    op.create_index("idx_submissions_created_at", "submissions", [sa.text("created_at DESC")])
    for column in ("email", "mobile"):
        op.create_index(
            f"uq_submissions_photographer_{column}",
            "submissions",
            [column],
            unique=True,
            postgresql_where=sa.text("resource_type = 'photographer'"),
            sqlite_where=sa.text("resource_type = 'photographer'"),
        )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "user_id",
            sa.String(64),
            nullable=False,
            comment="Target inbox: 'admin' or a photographer id",
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("action_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("related_id", sa.Uuid(), nullable=True),
        sa.Column("related_type", sa.String(30), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_related_id", "notifications", ["related_id"])
    op.create_index(
        "idx_notifications_user_unread",
        "notifications",
        ["user_id", "read", "action_required"],
    )
    op.create_index(
        "idx_notifications_created_at", "notifications", [sa.text("created_at DESC")]
    )


def downgrade() -> None:
    op.drop_index("idx_notifications_created_at", table_name="notifications")
    op.drop_index("idx_notifications_user_unread", table_name="notifications")
    op.drop_index("ix_notifications_related_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("uq_submissions_photographer_mobile", table_name="submissions")
    op.drop_index("uq_submissions_photographer_email", table_name="submissions")
    op.drop_index("idx_submissions_created_at", table_name="submissions")
    op.drop_index("idx_submissions_status_type", table_name="submissions")
    op.drop_index("ix_submissions_mobile", table_name="submissions")
    op.drop_index("ix_submissions_email", table_name="submissions")
    op.drop_table("submissions")
