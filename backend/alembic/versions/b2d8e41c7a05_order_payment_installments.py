"""order payment installments

Revision ID: b2d8e41c7a05
Revises: a1c4e7f20b10
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "b2d8e41c7a05"
down_revision = "a1c4e7f20b10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "orders",
        sa.Column("received_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.execute("UPDATE orders SET received_amount_cents = paid_amount_cents WHERE status = 'PAID'")
    op.alter_column("orders", "received_amount_cents", server_default=None)


def downgrade() -> None:
    op.drop_column("orders", "received_amount_cents")
