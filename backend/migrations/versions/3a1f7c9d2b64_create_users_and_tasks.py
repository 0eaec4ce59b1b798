"""create users and tasks tables

Revision ID: 3a1f7c9d2b64
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision = "3a1f7c9d2b64"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create user directory and task document tables."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())
    if "users" not in table_names:
        op.create_table(
            "users",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("role", sa.String(), nullable=False, server_default="member"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index("ix_users_role", "users", ["role"])
    if "tasks" not in table_names:
        op.create_table(
            "tasks",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("assigned_to", sa.Uuid(), nullable=False),
            sa.Column("assigned_by", sa.Uuid(), nullable=False),
            sa.Column("priority", sa.String(), nullable=False, server_default="medium"),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("due_date", sa.DateTime(), nullable=False),
            sa.Column("stages", sa.JSON(), nullable=False),
            sa.Column("notes", sa.JSON(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["assigned_to"], ["users.id"]),
            sa.ForeignKeyConstraint(["assigned_by"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_tasks_assigned_to", "tasks", ["assigned_to"])
        op.create_index("ix_tasks_assigned_by", "tasks", ["assigned_by"])
        op.create_index("ix_tasks_priority", "tasks", ["priority"])
        op.create_index("ix_tasks_status", "tasks", ["status"])
        op.create_index("ix_tasks_created_at", "tasks", ["created_at"])

    refreshed = sa.inspect(bind)
    columns = {column["name"] for column in refreshed.get_columns("tasks")}
    with op.batch_alter_table("tasks") as batch:
        if "priority" in columns:
            batch.alter_column("priority", server_default=None)
        if "status" in columns:
            batch.alter_column("status", server_default=None)


def downgrade() -> None:
    """Drop task and user tables."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())
    if "tasks" in table_names:
        indexes = {index["name"] for index in inspector.get_indexes("tasks")}
        for name in (
            "ix_tasks_created_at",
            "ix_tasks_status",
            "ix_tasks_priority",
            "ix_tasks_assigned_by",
            "ix_tasks_assigned_to",
        ):
            if name in indexes:
                op.drop_index(name, table_name="tasks")
        op.drop_table("tasks")
    if "users" in table_names:
        indexes = {index["name"] for index in inspector.get_indexes("users")}
        if "ix_users_role" in indexes:
            op.drop_index("ix_users_role", table_name="users")
        if "ix_users_email" in indexes:
            op.drop_index("ix_users_email", table_name="users")
        op.drop_table("users")
