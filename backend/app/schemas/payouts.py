from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.enums import OrderPayoutState, PayoutStatus
from app.schemas.pagination import PaginationOut


class PayoutProcessIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    order_ids: list[UUID] = Field(min_length=1)
    bank_reference: str = Field(min_length=1, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("order_ids")
    @classmethod
    def _unique_ids(cls, v: list[UUID]) -> list[UUID]:
        if len(set(v)) != len(v):
            raise ValueError("order_ids must be unique")
        return v

    @field_validator("notes")
    @classmethod
    def _blank_notes(cls, v: str | None) -> str | None:
        return v or None


class SellerBriefOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    business_name: str
    trading_name: str | None
    bank_account_name: str | None
    bank_account_number: str | None
    bank_name: str | None


class PendingOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    buyer_id: str
    currency: str
    paid_amount_cents: int
    platform_commission_cents: int
    seller_net_amount_cents: int
    paid_out_amount_cents: int
    pending_amount_cents: int
    payment_date: datetime | None
    delivery_date: date | None


class PendingSellerOut(BaseModel):
    seller: SellerBriefOut
    orders: list[PendingOrderOut]
    order_count: int
    total_pending_cents: int
    pending_by_currency: dict[str, int]


class PendingCurrencyTotalsOut(BaseModel):
    order_count: int
    total_paid_cents: int
    total_platform_fee_cents: int
    total_seller_amount_cents: int
    total_paid_out_cents: int
    total_pending_payouts_cents: int


class PendingSummaryOut(BaseModel):
    total_sellers: int
    total_orders: int
    # Money totals below are in this currency only; see by_currency for the rest.
    currency: str
    total_paid_cents: int
    total_platform_fee_cents: int
    total_seller_amount_cents: int
    total_paid_out_cents: int
    total_pending_payouts_cents: int
    by_currency: dict[str, PendingCurrencyTotalsOut]


class PendingPayoutsOut(BaseModel):
    sellers: list[PendingSellerOut]
    summary: PendingSummaryOut


class PayoutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    seller_id: UUID
    gross_amount_cents: int
    platform_commission_cents: int
    gateway_fee_cents: int
    net_amount_cents: int
    currency: str
    bank_reference: str
    notes: str | None
    status: PayoutStatus
    processed_at: datetime | None
    created_at: datetime


class PayoutOrderLineOut(BaseModel):
    order_id: UUID
    order_number: str
    amount_cents: int
    status: OrderPayoutState
    remaining_cents: int


class PayoutProcessOut(BaseModel):
    payout: PayoutOut
    orders: list[PayoutOrderLineOut]
    seller: SellerBriefOut
    selected_order_ids: list[UUID]
    replayed: bool


class PayoutHistoryItemOut(PayoutOut):
    seller: SellerBriefOut
    order_numbers: list[str]


class PayoutCurrencyTotalsOut(BaseModel):
    total_records: int
    total_payouts_cents: int
    total_platform_fee_cents: int
    total_gross_cents: int


class PayoutHistorySummaryOut(BaseModel):
    currency: str
    total_payouts_cents: int
    total_platform_fee_cents: int
    total_gross_cents: int
    total_records: int
    status_counts: dict[str, int]
    by_currency: dict[str, PayoutCurrencyTotalsOut]


class PayoutHistoryOut(BaseModel):
    payouts: list[PayoutHistoryItemOut]
    pagination: PaginationOut
    summary: PayoutHistorySummaryOut


class SellerPayoutSummaryOut(BaseModel):
    days: int
    since: datetime
    currency: str
    payout_count: int
    total_paid_out_cents: int
    pending_order_count: int
    total_pending_cents: int
    last_payout_at: datetime | None
    paid_out_by_currency: dict[str, int]
    pending_by_currency: dict[str, int]
