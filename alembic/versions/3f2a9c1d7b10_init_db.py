"""Init DB

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-17 09:12:44.318205

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ROLES = ("ADMIN", "ORGANIZER", "PARTICIPANT")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=True),
        sa.Column("password_hash", sa.VARCHAR(), nullable=True),
        sa.Column(
            "role",
            sa.Enum(*ROLES, name="user_role"),
            server_default="PARTICIPANT",
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "organizer_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_organizer_profiles_user_id", "organizer_profiles", ["user_id"], unique=True
    )

    op.create_table(
        "participant_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_participant_profiles_user_id",
        "participant_profiles",
        ["user_id"],
        unique=True,
    )

    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.TEXT(), nullable=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["owner_id"], ["organizer_profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_companies_owner_id", "companies", ["owner_id"])

    op.create_table(
        "company_organizers",
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("organizer_id", sa.Integer(), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["organizer_id"], ["organizer_profiles.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("company_id", "organizer_id"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.TEXT(), nullable=False),
        sa.Column("category", sa.VARCHAR(), nullable=True),
        sa.Column("mode", sa.Enum("ONLINE", "ONSITE", name="event_mode"), nullable=False),
        sa.Column("venue", sa.VARCHAR(), nullable=True),
        sa.Column("join_link", sa.VARCHAR(), nullable=True),
        sa.Column("contact_info", sa.VARCHAR(), nullable=True),
        sa.Column("total_seats", sa.Integer(), nullable=True),
        sa.Column("requires_approval", sa.Boolean(), nullable=False),
        sa.Column("join_questions", sa.JSON(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "COMPLETED", "CANCELLED", name="event_status"),
            server_default="ACTIVE",
            nullable=False,
        ),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("organizer_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("start_date < end_date", name="ck_events_start_before_end"),
        sa.CheckConstraint(
            "total_seats IS NULL OR total_seats >= 0",
            name="ck_events_total_seats_ge_0",
        ),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["organizer_id"], ["organizer_profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_end_date", "events", ["end_date"])
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_company_id", "events", ["company_id"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    op.create_index("idx_events_status_start", "events", ["status", "start_date"])

    op.create_table(
        "event_attachments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("url", sa.VARCHAR(), nullable=False),
        sa.Column("public_id", sa.VARCHAR(), nullable=True),
        sa.Column(
            "media_type",
            sa.Enum("IMAGE", "VIDEO", name="attachment_media_type"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_event_attachments_event_id", "event_attachments", ["event_id"])

    op.create_table(
        "event_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", name="participation_status"),
            server_default="PENDING",
            nullable=False,
        ),
        sa.Column("answers", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["participant_id"], ["participant_profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "event_id",
            "participant_id",
            name="uq_event_participants_event_participant",
        ),
    )
    op.create_index("ix_event_participants_event_id", "event_participants", ["event_id"])
    op.create_index(
        "ix_event_participants_participant_id", "event_participants", ["participant_id"]
    )

    op.create_table(
        "unverified_users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("password_hash", sa.VARCHAR(), nullable=False),
        sa.Column(
            "role",
            sa.Enum(*ROLES, name="unverified_user_role"),
            server_default="PARTICIPANT",
            nullable=False,
        ),
        sa.Column("token", sa.VARCHAR(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_unverified_users_email", "unverified_users", ["email"])
    op.create_index("ix_unverified_users_token", "unverified_users", ["token"], unique=True)

    op.create_table(
        "otps",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("code", sa.VARCHAR(), nullable=False),
        sa.Column(
            "purpose",
            sa.Enum("LOGIN", "SIGNUP", "RESET", name="otp_purpose"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_otps_email", "otps", ["email"])

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token", sa.VARCHAR(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_password_reset_tokens_user_id", "password_reset_tokens", ["user_id"]
    )
    op.create_index(
        "ix_password_reset_tokens_token", "password_reset_tokens", ["token"], unique=True
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("password_reset_tokens")
    op.drop_table("otps")
    op.drop_table("unverified_users")
    op.drop_table("event_participants")
    op.drop_table("event_attachments")
    op.drop_table("events")
    op.drop_table("company_organizers")
    op.drop_table("companies")
    op.drop_table("participant_profiles")
    op.drop_table("organizer_profiles")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_name in (
        "otp_purpose",
        "unverified_user_role",
        "participation_status",
        "attachment_media_type",
        "event_status",
        "event_mode",
        "user_role",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
