from app.models.audit_log import AuditLog
from app.models.document_counter import DocumentCounter
from app.models.expense import Expense
from app.models.ledger_entry import LedgerEntry
from app.models.order import Order, OrderItem
from app.models.payout import Payout
from app.models.seller import Seller

__all__ = [
    "AuditLog",
    "DocumentCounter",
    "Expense",
    "LedgerEntry",
    "Order",
    "OrderItem",
    "Payout",
    "Seller",
]
