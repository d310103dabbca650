"""create monitor_targets and price_observations tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "monitor_targets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("sku", sa.String(length=120), nullable=True),
        sa.Column("cost", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("status", sa.String(length=16), server_default="NEVER_RUN", nullable=False),
        sa.Column("last_update_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("url"),
        sa.UniqueConstraint("sku"),
    )
    op.create_index("ix_monitor_targets_status", "monitor_targets", ["status"], unique=False)
    op.create_index(
        "ix_monitor_targets_last_update_at",
        "monitor_targets",
        ["last_update_at"],
        unique=False,
    )

    op.create_table(
        "price_observations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_id", sa.String(length=64), nullable=False),
        sa.Column("seller", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["target_id"], ["monitor_targets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "seller", name="uq_price_observations_product_seller"),
    )
    op.create_index(
        "ix_price_observations_target_id",
        "price_observations",
        ["target_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_price_observations_target_id", table_name="price_observations")
    op.drop_table("price_observations")
    op.drop_index("ix_monitor_targets_last_update_at", table_name="monitor_targets")
    op.drop_index("ix_monitor_targets_status", table_name="monitor_targets")
    op.drop_table("monitor_targets")
