from __future__ import annotations

from enum import StrEnum


class SellerStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ACTIVE = "ACTIVE"


class OrderStatus(StrEnum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"


class OrderPayoutState(StrEnum):
    UNPAID = "UNPAID"
    PAID_PENDING_PAYOUT = "PAID_PENDING_PAYOUT"
    PAYOUT_PROCESSED = "PAYOUT_PROCESSED"


class PayoutStatus(StrEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    FROZEN = "FROZEN"


class LedgerEntryType(StrEnum):
    SALE = "SALE"
    EXPENSE = "EXPENSE"
    COMMISSION = "COMMISSION"
    REFUND = "REFUND"
    PAYOUT = "PAYOUT"


class TaxCategory(StrEnum):
    VATABLE = "VATABLE"
    NON_VATABLE = "NON_VATABLE"


class ExpenseCategory(StrEnum):
    RENT = "RENT"
    UTILITIES = "UTILITIES"
    WAGES = "WAGES"
    FUEL = "FUEL"
    MARKETING = "MARKETING"
    EQUIPMENT = "EQUIPMENT"
    SUPPLIES = "SUPPLIES"
    MAINTENANCE = "MAINTENANCE"
    INSURANCE = "INSURANCE"
    OTHER = "OTHER"


class DocumentType(StrEnum):
    ORDER = "ORDER"
    PAYOUT = "PAYOUT"
