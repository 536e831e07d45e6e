"""Create sites, site aliases and slugs.

Revision ID: 0001_identity_tables
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_identity_tables"
down_revision = None
branch_labels = None
depends_on = None


SLUG_ENTITY_TYPES = ("place", "place_type", "town", "page", "region", "event")


def upgrade() -> None:
    op.create_table(
        "sites",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("default_lang", sa.String(length=8), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("slug", name="uq_sites_slug"),
    )

    op.create_table(
        "site_aliases",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "site_id",
            sa.String(length=36),
            sa.ForeignKey("sites.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("lang", sa.String(length=8), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "redirect_to_id",
            sa.String(length=36),
            sa.ForeignKey("site_aliases.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("site_id", "lang", "key", name="uq_site_aliases_site_lang_key"),
    )
    op.create_index("ix_site_aliases_lang_key", "site_aliases", ["lang", "key"])
    op.create_index("ix_site_aliases_site_lang", "site_aliases", ["site_id", "lang"])

    op.create_table(
        "slugs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "site_id",
            sa.String(length=36),
            sa.ForeignKey("sites.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("lang", sa.String(length=8), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column(
            "entity_type",
            sa.Enum(*SLUG_ENTITY_TYPES, name="slug_entity_type", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "redirect_to_id",
            sa.String(length=36),
            sa.ForeignKey("slugs.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("site_id", "lang", "slug", name="uq_slugs_site_lang_slug"),
    )
    op.create_index("ix_slugs_site_entity", "slugs", ["site_id", "entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_slugs_site_entity", table_name="slugs")
    op.drop_table("slugs")
    op.drop_index("ix_site_aliases_site_lang", table_name="site_aliases")
    op.drop_index("ix_site_aliases_lang_key", table_name="site_aliases")
    op.drop_table("site_aliases")
    op.drop_table("sites")
