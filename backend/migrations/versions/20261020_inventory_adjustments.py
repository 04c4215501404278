"""Inventory adjustments

Revision ID: 20261020_inv_adjust
Revises: 20261019_initial
Create Date: 2026-10-20
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_inv_adjust"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table("inventory_adjustments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=50), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=32), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("qty_before", sa.Integer(), nullable=False),
        sa.Column("qty_after", sa.Integer(), nullable=False),
        sa.Column("actor_cpf", sa.String(length=11), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ),
        sa.ForeignKeyConstraint(["item_id"], ["inventory_items.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table("inventory_adjustments", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_adjustments_company_id", ["company_id"], unique=False)
        batch_op.create_index("ix_inventory_adjustments_item_id", ["item_id"], unique=False)


def downgrade():
    op.drop_table("inventory_adjustments")
