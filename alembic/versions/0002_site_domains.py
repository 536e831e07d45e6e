"""Add site domains for host based site resolution.

Revision ID: 0002_site_domains
Revises: 0001_identity_tables
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_site_domains"
down_revision = "0001_identity_tables"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "site_domains",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "site_id",
            sa.String(length=36),
            sa.ForeignKey("sites.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("default_lang", sa.String(length=8), nullable=False, server_default="hu"),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("domain", name="uq_site_domains_domain"),
    )
    op.create_index("ix_site_domains_site", "site_domains", ["site_id"])


def downgrade() -> None:
    op.drop_index("ix_site_domains_site", table_name="site_domains")
    op.drop_table("site_domains")
