"""users, events and certificate configurations"""

from alembic import op
import sqlalchemy as sa

revision = "0001_core_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255)),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_users_email_lower", "users", [sa.text("lower(email)")], unique=True
    )
    op.create_table(
        "events",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="upcoming"),
        sa.Column("date", sa.Date),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "certificate_configurations",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("event_id", sa.String(length=64), nullable=False),
        sa.Column("event_title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("template_base64", sa.Text, nullable=False),
        sa.Column("attendees", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_unique_constraint(
        "uix_certificate_configuration_event",
        "certificate_configurations",
        ["event_id"],
    )


def downgrade() -> None:
    op.drop_constraint(
        "uix_certificate_configuration_event",
        "certificate_configurations",
        type_="unique",
    )
    op.drop_table("certificate_configurations")
    op.drop_table("events")
    op.drop_index("ix_users_email_lower", table_name="users")
    op.drop_table("users")
