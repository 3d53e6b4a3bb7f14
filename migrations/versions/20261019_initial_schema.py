"""Create users, subscriptions, projects and communication tables.

Revision ID: 3f1e0c9a7b21
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1e0c9a7b21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column(
            "role",
            sa.Enum("user", "developer", "admin", name="user_role"),
            nullable=False,
            server_default="user",
        ),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verification_token", sa.String(length=64), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("country", sa.String(length=50), nullable=True),
        sa.Column("preferences", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(
        "ix_users_verification_token", "users", ["verification_token"], unique=False
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "plan",
            sa.Enum("basic", "premium", "enterprise", name="subscription_plan"),
            nullable=False,
        ),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="incomplete"),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("current_period_end", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sa.UniqueConstraint("stripe_subscription_id"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("assigned_developer_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "mobile-app",
                "web-app",
                "website",
                "automation",
                "ai-tool",
                "other",
                name="project_category",
            ),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "draft",
                "prototype",
                "in-development",
                "testing",
                "deployed",
                "cancelled",
                name="project_status",
            ),
            nullable=False,
            server_default="draft",
        ),
        sa.Column(
            "priority",
            sa.Enum("low", "medium", "high", "urgent", name="project_priority"),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("platform", sa.JSON(), nullable=True),
        sa.Column("design", sa.JSON(), nullable=True),
        sa.Column("technical", sa.JSON(), nullable=True),
        sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_prompt", sa.Text(), nullable=True),
        sa.Column("ai_generated_at", sa.DateTime(), nullable=True),
        sa.Column("ai_confidence", sa.Float(), nullable=True),
        sa.Column("budget_planned", sa.Numeric(12, 2), nullable=True),
        sa.Column("budget_actual", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("planned_start", sa.DateTime(), nullable=True),
        sa.Column("planned_end", sa.DateTime(), nullable=True),
        sa.Column("actual_start", sa.DateTime(), nullable=True),
        sa.Column("actual_end", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["assigned_developer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"], unique=False)
    op.create_index(
        "ix_projects_assigned_developer_id", "projects", ["assigned_developer_id"], unique=False
    )
    op.create_index("ix_projects_created_at", "projects", ["created_at"], unique=False)

    op.create_table(
        "communication_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column(
            "type",
            sa.Enum("message", "file", "milestone", "status-update", name="communication_type"),
            nullable=False,
        ),
        sa.Column("content", sa.String(length=2000), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_communication_entries_project_id",
        "communication_entries",
        ["project_id"],
        unique=False,
    )
    op.create_index(
        "ix_communication_entries_timestamp",
        "communication_entries",
        ["timestamp"],
        unique=False,
    )

    op.create_table(
        "communication_reads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entry_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["entry_id"], ["communication_entries.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("entry_id", "user_id", name="uq_communication_reads_entry_user"),
    )
    op.create_index(
        "ix_communication_reads_entry_id", "communication_reads", ["entry_id"], unique=False
    )


def downgrade():
    op.drop_index("ix_communication_reads_entry_id", table_name="communication_reads")
    op.drop_table("communication_reads")
    op.drop_index("ix_communication_entries_timestamp", table_name="communication_entries")
    op.drop_index("ix_communication_entries_project_id", table_name="communication_entries")
    op.drop_table("communication_entries")
    op.drop_index("ix_projects_created_at", table_name="projects")
    op.drop_index("ix_projects_assigned_developer_id", table_name="projects")
    op.drop_index("ix_projects_owner_id", table_name="projects")
    op.drop_table("projects")
    op.drop_table("subscriptions")
    op.drop_index("ix_users_verification_token", table_name="users")
    op.drop_table("users")
