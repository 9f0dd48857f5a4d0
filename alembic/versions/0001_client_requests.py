"""users, lawyer profiles and client requests
Revision ID: 0001_client_requests
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_client_requests"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "lawyers",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bar_number", sa.String(length=50), nullable=True),
        sa.Column("specialty", sa.String(length=120), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
    )
    op.create_index("ix_lawyers_user_id", "lawyers", ["user_id"], unique=True)
    op.create_index("ix_lawyers_created_at", "lawyers", ["created_at"])

    op.create_table(
        "client_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("client_id", sa.String(length=64), nullable=False),
        sa.Column("lawyer_id", sa.String(length=64), nullable=True),
        sa.Column("request_type", sa.String(length=30), nullable=False, server_default="consultation"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("case_category", sa.String(length=120), nullable=True),
        sa.Column("urgency", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("budget_min", sa.Numeric(12, 2), nullable=True),
        sa.Column("budget_max", sa.Numeric(12, 2), nullable=True),
        sa.Column("preferred_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
    )
    op.create_index("ix_client_requests_client_id", "client_requests", ["client_id"])
    op.create_index("ix_client_requests_lawyer_id", "client_requests", ["lawyer_id"])
    op.create_index("ix_client_requests_status", "client_requests", ["status"])
    op.create_index("ix_client_requests_created_at", "client_requests", ["created_at"])

def downgrade():
    op.drop_index("ix_client_requests_created_at", table_name="client_requests")
    op.drop_index("ix_client_requests_status", table_name="client_requests")
    op.drop_index("ix_client_requests_lawyer_id", table_name="client_requests")
    op.drop_index("ix_client_requests_client_id", table_name="client_requests")
    op.drop_table("client_requests")
    op.drop_index("ix_lawyers_created_at", table_name="lawyers")
    op.drop_index("ix_lawyers_user_id", table_name="lawyers")
    op.drop_table("lawyers")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
