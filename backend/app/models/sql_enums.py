from __future__ import annotations

from sqlalchemy import Enum

from app.core.enums import (
    DocumentType,
    ExpenseCategory,
    LedgerEntryType,
    OrderStatus,
    PayoutStatus,
    SellerStatus,
    TaxCategory,
)

seller_status_enum = Enum(SellerStatus, name="seller_status")

order_status_enum = Enum(OrderStatus, name="order_status")
payout_status_enum = Enum(PayoutStatus, name="payout_status")

ledger_entry_type_enum = Enum(LedgerEntryType, name="ledger_entry_type")
tax_category_enum = Enum(TaxCategory, name="tax_category")
expense_category_enum = Enum(ExpenseCategory, name="expense_category")

document_type_enum = Enum(DocumentType, name="document_type")
