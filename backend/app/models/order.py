from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import OrderPayoutState, OrderStatus
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.sql_enums import order_status_enum


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    seller_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sellers.id"),
        nullable=False,
        index=True,
    )
    buyer_id: Mapped[str] = mapped_column(String(120), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        order_status_enum, nullable=False, default=OrderStatus.PENDING_PAYMENT
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    # Installments accumulate in received_amount_cents until it reaches the total.
    # Money split, filled once the order is settled:
    # - seller_net = paid - platform_commission
    # - seller_net = paid_out + pending
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    received_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paid_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    platform_commission_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seller_net_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paid_out_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    payout_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("payouts.id"),
        nullable=True,
        index=True,
    )

    items: Mapped[list["OrderItem"]] = relationship(back_populates="order", cascade="all, delete-orphan")

    @property
    def payout_state(self) -> OrderPayoutState:
        if self.status != OrderStatus.PAID:
            return OrderPayoutState.UNPAID
        if self.payout_id is None:
            return OrderPayoutState.PAID_PENDING_PAYOUT
        return OrderPayoutState.PAYOUT_PROCESSED


class OrderItem(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False)

    product_name: Mapped[str] = mapped_column(String(300), nullable=False)
    part_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")
