"""Initial memorial records schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

OFFERING_TYPES = ("CANDLE", "FLOWER", "INCENSE", "PRAYER")
REMINDER_FREQUENCIES = ("ONCE", "YEARLY", "MONTHLY")
CONTRIBUTION_TYPES = ("PERSON_CREATE", "PERSON_UPDATE", "REMEMBRANCE", "OFFERING")
CONTRIBUTION_STATUSES = ("PENDING", "APPROVED", "REJECTED")
RELATIONSHIP_TYPES = (
    "PARENT", "CHILD", "SPOUSE", "SIBLING", "GRANDPARENT",
    "GRANDCHILD", "AUNT_UNCLE", "NIECE_NEPHEW", "COUSIN", "OTHER",
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_locations_name", "locations", ["name"])

    op.create_table(
        "cemeteries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "persons",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.DateTime(), nullable=True),
        sa.Column("date_of_death", sa.DateTime(), nullable=True),
        sa.Column("cause_of_death", sa.String(length=255), nullable=True),
        sa.Column("place_of_birth_id", sa.Integer(), sa.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True),
        sa.Column("place_of_death_id", sa.Integer(), sa.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True),
        sa.Column("cemetery_id", sa.Integer(), sa.ForeignKey("cemeteries.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_persons_name", "persons", ["last_name", "first_name"])
    op.create_index("idx_persons_date_of_death", "persons", ["date_of_death"])
    op.create_index("idx_persons_created_at", "persons", ["created_at"])

    op.create_table(
        "memorials",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("person_id"),
    )

    op.create_table(
        "remembrances",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("memorial_id", sa.Integer(), sa.ForeignKey("memorials.id", ondelete="CASCADE"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("author_name", sa.String(length=100), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_remembrances_memorial", "remembrances", ["memorial_id"])
    op.create_index("idx_remembrances_approved", "remembrances", ["approved", "created_at"])

    op.create_table(
        "virtual_offerings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("memorial_id", sa.Integer(), sa.ForeignKey("memorials.id", ondelete="CASCADE"), nullable=False),
        sa.Column("offering_type", sa.Enum(*OFFERING_TYPES, name="offeringtype"), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=True),
        sa.Column("author_name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_offerings_memorial", "virtual_offerings", ["memorial_id"])

    op.create_table(
        "memorial_reminders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("memorial_id", sa.Integer(), sa.ForeignKey("memorials.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("frequency", sa.Enum(*REMINDER_FREQUENCIES, name="reminderfrequency"), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_reminders_user_memorial", "memorial_reminders", ["user_id", "memorial_id"])

    op.create_table(
        "photos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=False),
        sa.Column("thumbnail_url", sa.String(length=500), nullable=True),
        sa.Column("caption", sa.String(length=200), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_photos_person", "photos", ["person_id"])

    op.create_table(
        "family_relationships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("related_person_id", sa.Integer(), sa.ForeignKey("persons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("relationship_type", sa.Enum(*RELATIONSHIP_TYPES, name="relationshiptype"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_family_person", "family_relationships", ["person_id"])
    op.create_index("idx_family_related_person", "family_relationships", ["related_person_id"])

    op.create_table(
        "contributions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.Enum(*CONTRIBUTION_TYPES, name="contributiontype"), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("status", sa.Enum(*CONTRIBUTION_STATUSES, name="contributionstatus"), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_by", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_contributions_status_submitted", "contributions", ["status", "submitted_at"])
    op.create_index("idx_contributions_person", "contributions", ["person_id"])


def downgrade() -> None:
    for table in (
        "contributions",
        "family_relationships",
        "photos",
        "memorial_reminders",
        "virtual_offerings",
        "remembrances",
        "memorials",
        "persons",
        "cemeteries",
        "locations",
        "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ("offeringtype", "reminderfrequency", "relationshiptype", "contributiontype", "contributionstatus"):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
