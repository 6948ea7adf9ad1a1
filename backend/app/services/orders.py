from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.enums import DocumentType, LedgerEntryType, OrderStatus, TaxCategory
from app.models.order import Order, OrderItem
from app.models.seller import Seller
from app.schemas.orders import OrderCreate
from app.services.accounting import append_ledger_entry
from app.services.audit import audit_log
from app.services.documents import next_document_number
from app.services.errors import ConflictError, NotFoundError
from app.services.money import split_commission


logger = logging.getLogger(__name__)


async def get_order(session: AsyncSession, order_id: uuid.UUID, *, for_update: bool = False) -> Order | None:
    stmt = select(Order).where(Order.id == order_id).options(selectinload(Order.items))
    if for_update:
        stmt = stmt.with_for_update()
    return (await session.execute(stmt)).scalar_one_or_none()


async def _get_order_or_raise(session: AsyncSession, order_id: uuid.UUID) -> Order:
    order = await get_order(session, order_id, for_update=True)
    if order is None:
        raise NotFoundError(f"Order not found: {order_id}")
    return order


async def create_order(session: AsyncSession, *, actor: str, data: OrderCreate, today: date | None = None) -> Order:
    seller = await session.get(Seller, data.seller_id)
    if seller is None:
        raise NotFoundError(f"Seller not found: {data.seller_id}")

    settings = get_settings()
    today = today or date.today()
    order_number = await next_document_number(session, doc_type=DocumentType.ORDER, year=today.year)

    items = [
        OrderItem(
            product_name=i.product_name,
            part_number=i.part_number,
            quantity=i.quantity,
            unit_price_cents=i.unit_price_cents,
        )
        for i in data.items
    ]
    order = Order(
        order_number=order_number,
        seller_id=seller.id,
        buyer_id=data.buyer_id,
        status=OrderStatus.PENDING_PAYMENT,
        currency=(data.currency or settings.default_currency).upper(),
        total_amount_cents=sum(i.quantity * i.unit_price_cents for i in items),
        items=items,
    )
    session.add(order)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="order",
        entity_id=order.id,
        action="create",
        after={
            "order_number": order.order_number,
            "seller_id": order.seller_id,
            "total_amount_cents": order.total_amount_cents,
            "currency": order.currency,
        },
    )
    return order


async def mark_order_paid(
    session: AsyncSession,
    *,
    actor: str,
    order_id: uuid.UUID,
    paid_amount_cents: int | None = None,
    payment_date: datetime | None = None,
) -> Order:
    """Records a buyer payment against an order.

    Payments may arrive in installments. Each one is added to
    `received_amount_cents`; an omitted amount pays the outstanding balance.
    The order becomes PAID, and the commission split and ledger lines are
    written, only once the received total covers the order total.
    """
    order = await _get_order_or_raise(session, order_id)
    if order.status != OrderStatus.PENDING_PAYMENT:
        raise ConflictError(f"Order {order.order_number} is already {order.status}")

    remaining = order.remaining_cents
    installment = remaining if paid_amount_cents is None else paid_amount_cents
    if installment <= 0 and remaining > 0:
        raise ConflictError(f"Payment for order {order.order_number} must be positive")
    if installment > remaining:
        raise ConflictError(
            f"Payment of {installment} exceeds the outstanding balance of {remaining} on order {order.order_number}"
        )

    received_before = order.received_amount_cents
    order.received_amount_cents = received_before + installment
    paid_at = payment_date or datetime.now(timezone.utc)

    if order.received_amount_cents < order.total_amount_cents:
        await session.flush()
        await audit_log(
            session,
            actor=actor,
            entity_type="order",
            entity_id=order.id,
            action="record_payment",
            before={"received_amount_cents": received_before},
            after={
                "received_amount_cents": order.received_amount_cents,
                "remaining_cents": order.remaining_cents,
                "payment_date": paid_at,
            },
        )
        logger.info(
            "Order partially paid",
            extra={"order_number": order.order_number, "received_amount_cents": order.received_amount_cents},
        )
        return order

    settings = get_settings()
    paid = order.received_amount_cents
    commission, net = split_commission(paid_cents=paid, commission_rate_bp=settings.platform_commission_rate_bp)

    order.status = OrderStatus.PAID
    order.paid_amount_cents = paid
    order.platform_commission_cents = commission
    order.seller_net_amount_cents = net
    order.paid_out_amount_cents = 0
    order.pending_amount_cents = net
    order.payment_date = paid_at
    await session.flush()

    await append_ledger_entry(
        session,
        seller_id=order.seller_id,
        entry_date=paid_at.date(),
        entry_type=LedgerEntryType.SALE,
        category="ORDER_SALE",
        description=f"Sale {order.order_number}",
        amount_cents=paid,
        reference=order.order_number,
        tax_category=TaxCategory.VATABLE,
        entity_type="order",
        entity_id=order.id,
    )
    if commission:
        await append_ledger_entry(
            session,
            seller_id=order.seller_id,
            entry_date=paid_at.date(),
            entry_type=LedgerEntryType.COMMISSION,
            category="PLATFORM_COMMISSION",
            description=f"Platform commission {order.order_number}",
            amount_cents=-commission,
            reference=order.order_number,
            entity_type="order",
            entity_id=order.id,
        )

    await audit_log(
        session,
        actor=actor,
        entity_type="order",
        entity_id=order.id,
        action="mark_paid",
        before={"status": OrderStatus.PENDING_PAYMENT, "received_amount_cents": received_before},
        after={
            "status": order.status,
            "received_amount_cents": order.received_amount_cents,
            "paid_amount_cents": paid,
            "platform_commission_cents": commission,
            "seller_net_amount_cents": net,
        },
    )
    logger.info("Order paid", extra={"order_number": order.order_number, "paid_amount_cents": paid})
    return order


async def mark_order_delivered(
    session: AsyncSession,
    *,
    actor: str,
    order_id: uuid.UUID,
    delivery_date: date,
) -> Order:
    order = await _get_order_or_raise(session, order_id)
    if order.delivery_date is not None:
        raise ConflictError(f"Order {order.order_number} was already delivered on {order.delivery_date}")

    order.delivery_date = delivery_date
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="order",
        entity_id=order.id,
        action="mark_delivered",
        after={"delivery_date": delivery_date},
    )
    return order
