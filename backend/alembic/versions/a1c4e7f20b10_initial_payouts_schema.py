"""initial payouts and seller accounting schema

Revision ID: a1c4e7f20b10
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "a1c4e7f20b10"
down_revision = None
branch_labels = None
depends_on = None


seller_status = postgresql.ENUM("PENDING", "APPROVED", "REJECTED", "ACTIVE", name="seller_status", create_type=False)
order_status = postgresql.ENUM("PENDING_PAYMENT", "PAID", name="order_status", create_type=False)
payout_status = postgresql.ENUM(
    "PENDING", "PROCESSING", "COMPLETED", "FAILED", "FROZEN", name="payout_status", create_type=False
)
ledger_entry_type = postgresql.ENUM(
    "SALE", "EXPENSE", "COMMISSION", "REFUND", "PAYOUT", name="ledger_entry_type", create_type=False
)
tax_category = postgresql.ENUM("VATABLE", "NON_VATABLE", name="tax_category", create_type=False)
expense_category = postgresql.ENUM(
    "RENT",
    "UTILITIES",
    "WAGES",
    "FUEL",
    "MARKETING",
    "EQUIPMENT",
    "SUPPLIES",
    "MAINTENANCE",
    "INSURANCE",
    "OTHER",
    name="expense_category",
    create_type=False,
)
document_type = postgresql.ENUM("ORDER", "PAYOUT", name="document_type", create_type=False)

_ENUMS = (seller_status, order_status, payout_status, ledger_entry_type, tax_category, expense_category, document_type)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in _ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "sellers",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=200), nullable=False),
        sa.Column("business_name", sa.String(length=200), nullable=False),
        sa.Column("trading_name", sa.String(length=200), nullable=True),
        sa.Column("business_address", sa.String(length=500), nullable=False),
        sa.Column("contact_number", sa.String(length=50), nullable=False),
        sa.Column("tin", sa.String(length=50), nullable=False),
        sa.Column("registration_number", sa.String(length=80), nullable=True),
        sa.Column("contact_person", sa.String(length=200), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("bank_account_name", sa.String(length=200), nullable=True),
        sa.Column("bank_account_number", sa.String(length=64), nullable=True),
        sa.Column("bank_name", sa.String(length=200), nullable=True),
        sa.Column("status", seller_status, nullable=False),
        sa.Column("sri_score_bp", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sellers_email"), "sellers", ["email"], unique=True)

    op.create_table(
        "payouts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("reference", sa.String(length=64), nullable=False),
        sa.Column("seller_id", sa.UUID(), nullable=False),
        sa.Column("gross_amount_cents", sa.Integer(), nullable=False),
        sa.Column("platform_commission_cents", sa.Integer(), nullable=False),
        sa.Column("gateway_fee_cents", sa.Integer(), nullable=False),
        sa.Column("net_amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("bank_reference", sa.String(length=200), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", payout_status, nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("idempotency_key", sa.String(length=128), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["seller_id"], ["sellers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reference"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index(op.f("ix_payouts_seller_id"), "payouts", ["seller_id"], unique=False)
    op.create_index(op.f("ix_payouts_processed_at"), "payouts", ["processed_at"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("order_number", sa.String(length=64), nullable=False),
        sa.Column("seller_id", sa.UUID(), nullable=False),
        sa.Column("buyer_id", sa.String(length=120), nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("paid_amount_cents", sa.Integer(), nullable=False),
        sa.Column("platform_commission_cents", sa.Integer(), nullable=False),
        sa.Column("seller_net_amount_cents", sa.Integer(), nullable=False),
        sa.Column("paid_out_amount_cents", sa.Integer(), nullable=False),
        sa.Column("pending_amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("payout_id", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["seller_id"], ["sellers.id"]),
        sa.ForeignKeyConstraint(["payout_id"], ["payouts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number"),
    )
    op.create_index(op.f("ix_orders_seller_id"), "orders", ["seller_id"], unique=False)
    op.create_index(op.f("ix_orders_delivery_date"), "orders", ["delivery_date"], unique=False)
    op.create_index(op.f("ix_orders_payout_id"), "orders", ["payout_id"], unique=False)

    op.create_table(
        "order_items",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("order_id", sa.UUID(), nullable=False),
        sa.Column("product_name", sa.String(length=300), nullable=False),
        sa.Column("part_number", sa.String(length=120), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("seller_id", sa.UUID(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("entry_type", ledger_entry_type, nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(length=120), nullable=True),
        sa.Column("tax_category", tax_category, nullable=True),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["seller_id"], ["sellers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ledger_entries_seller_entry_date", "ledger_entries", ["seller_id", "entry_date"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("seller_id", sa.UUID(), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("category", expense_category, nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("tax_category", tax_category, nullable=True),
        sa.Column("receipt", sa.String(length=500), nullable=True),
        sa.Column("ledger_entry_id", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["seller_id"], ["sellers.id"]),
        sa.ForeignKeyConstraint(["ledger_entry_id"], ["ledger_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ledger_entry_id"),
    )
    op.create_index(op.f("ix_expenses_seller_id"), "expenses", ["seller_id"], unique=False)

    op.create_table(
        "document_counters",
        sa.Column("doc_type", document_type, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("doc_type", "year", name="pk_document_counters"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("actor", sa.String(length=200), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_actor"), "audit_logs", ["actor"], unique=False)
    op.create_index(op.f("ix_audit_logs_entity_id"), "audit_logs", ["entity_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_logs_entity_id"), table_name="audit_logs")
    op.drop_index(op.f("ix_audit_logs_actor"), table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("document_counters")
    op.drop_index(op.f("ix_expenses_seller_id"), table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_ledger_entries_seller_entry_date", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_table("order_items")
    op.drop_index(op.f("ix_orders_payout_id"), table_name="orders")
    op.drop_index(op.f("ix_orders_delivery_date"), table_name="orders")
    op.drop_index(op.f("ix_orders_seller_id"), table_name="orders")
    op.drop_table("orders")
    op.drop_index(op.f("ix_payouts_processed_at"), table_name="payouts")
    op.drop_index(op.f("ix_payouts_seller_id"), table_name="payouts")
    op.drop_table("payouts")
    op.drop_index(op.f("ix_sellers_email"), table_name="sellers")
    op.drop_table("sellers")

    bind = op.get_bind()
    for enum in reversed(_ENUMS):
        enum.drop(bind, checkfirst=True)
