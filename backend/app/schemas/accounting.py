from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.enums import ExpenseCategory, LedgerEntryType, TaxCategory
from app.schemas.pagination import PaginationOut


class ExpenseCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    expense_date: date = Field(validation_alias="date")
    amount_cents: int = Field(gt=0)
    category: ExpenseCategory
    description: str = Field(min_length=1, max_length=500)
    tax_category: TaxCategory | None = None
    receipt: str | None = Field(default=None, max_length=500)


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    expense_date: date
    amount_cents: int
    category: ExpenseCategory
    description: str
    tax_category: TaxCategory | None
    receipt: str | None
    ledger_entry_id: UUID | None
    created_at: datetime


class LedgerEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entry_date: date
    entry_type: LedgerEntryType
    category: str
    description: str
    amount_cents: int
    reference: str | None
    tax_category: TaxCategory | None
    entity_type: str
    entity_id: UUID
    created_at: datetime
    debit_cents: int
    credit_cents: int


class LedgerLineOut(LedgerEntryOut):
    balance_cents: int


class LedgerPageOut(BaseModel):
    entries: list[LedgerLineOut]
    pagination: PaginationOut


class ExpenseBreakdownItem(BaseModel):
    category: str
    amount_cents: int
    percentage: Decimal
    count: int = Field(ge=0)


class AccountingPeriodOut(BaseModel):
    year: int | None
    month: int | None
    start: date | None
    end: date | None


class AccountingSummaryOut(BaseModel):
    period: AccountingPeriodOut

    total_sales_cents: int
    total_refunds_cents: int
    net_sales_cents: int
    total_commissions_cents: int
    total_expenses_cents: int
    expenses_by_category_cents: dict[str, int]
    total_payouts_cents: int

    net_profit_cents: int
    profit_margin: Decimal


class TrialBalanceAccountOut(BaseModel):
    code: str
    name: str
    type: str
    total_debit_cents: int
    total_credit_cents: int
    # Debits minus credits; negative means a credit balance.
    balance_cents: int


class TrialBalanceOut(BaseModel):
    date_from: date | None
    date_to: date | None
    accounts: list[TrialBalanceAccountOut]
    total_debits_cents: int
    total_credits_cents: int
    difference_cents: int
    is_balanced: bool
