from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import OrderPayoutState, OrderStatus


class OrderItemCreate(BaseModel):
    product_name: str = Field(min_length=1, max_length=300)
    part_number: str | None = Field(default=None, max_length=120)
    quantity: int = Field(ge=1)
    unit_price_cents: int = Field(ge=0)


class OrderCreate(BaseModel):
    seller_id: UUID
    buyer_id: str = Field(min_length=1, max_length=120)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    items: list[OrderItemCreate] = Field(min_length=1)


class OrderPaymentIn(BaseModel):
    # One installment; defaults to the outstanding balance when omitted.
    paid_amount_cents: int | None = Field(default=None, gt=0)
    payment_date: datetime | None = None


class OrderDeliveryIn(BaseModel):
    delivery_date: date


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_name: str
    part_number: str | None
    quantity: int
    unit_price_cents: int


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    seller_id: UUID
    buyer_id: str
    status: OrderStatus
    payout_state: OrderPayoutState
    currency: str

    total_amount_cents: int
    received_amount_cents: int
    remaining_cents: int
    is_partially_paid: bool
    paid_amount_cents: int
    platform_commission_cents: int
    seller_net_amount_cents: int
    paid_out_amount_cents: int
    pending_amount_cents: int

    payment_date: datetime | None
    delivery_date: date | None
    payout_id: UUID | None

    items: list[OrderItemOut]
    created_at: datetime
    updated_at: datetime
