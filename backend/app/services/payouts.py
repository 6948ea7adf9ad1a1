from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.enums import DocumentType, LedgerEntryType, OrderStatus, PayoutStatus
from app.models.order import Order
from app.models.payout import Payout
from app.models.seller import Seller
from app.schemas.payouts import PayoutProcessIn
from app.services.accounting import append_ledger_entry
from app.services.audit import audit_log
from app.services.documents import next_document_number
from app.services.errors import ConflictError, NotFoundError
from app.services.money import apply_rate_bp


logger = logging.getLogger(__name__)


class PayoutConflictError(ConflictError):
    pass


@dataclass(frozen=True)
class PayoutResult:
    payout: Payout
    seller: Seller
    orders: list[Order]
    selected_order_ids: list[uuid.UUID]
    replayed: bool = False


@dataclass
class PendingSellerGroup:
    seller: Seller
    currency: str
    orders: list[Order] = field(default_factory=list)

    @property
    def order_count(self) -> int:
        return len(self.orders)

    @property
    def pending_by_currency(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for o in self.orders:
            out[o.currency] = out.get(o.currency, 0) + o.pending_amount_cents
        return out

    @property
    def total_pending_cents(self) -> int:
        return self.pending_by_currency.get(self.currency, 0)


@dataclass(frozen=True)
class HistoryRow:
    payout: Payout
    seller: Seller
    order_numbers: list[str]


def derive_idempotency_key(*, order_ids: list[uuid.UUID], bank_reference: str) -> str:
    stable = {"order_ids": sorted(str(i) for i in order_ids), "bank_reference": bank_reference.strip()}
    return hashlib.sha256(json.dumps(stable, sort_keys=True, ensure_ascii=True).encode("utf-8")).hexdigest()


# Summary key -> Order attribute. Amounts in different currencies are never added
# together: flat totals are in the platform currency, `by_currency` holds all.
_PENDING_TOTALS = (
    ("total_paid_cents", "paid_amount_cents"),
    ("total_platform_fee_cents", "platform_commission_cents"),
    ("total_seller_amount_cents", "seller_net_amount_cents"),
    ("total_paid_out_cents", "paid_out_amount_cents"),
    ("total_pending_payouts_cents", "pending_amount_cents"),
)


def _pending_totals_by_currency(orders: list[Order]) -> dict[str, dict[str, int]]:
    out: dict[str, dict[str, int]] = {}
    for o in orders:
        totals = out.setdefault(o.currency, {"order_count": 0, **{key: 0 for key, _ in _PENDING_TOTALS}})
        totals["order_count"] += 1
        for key, attr in _PENDING_TOTALS:
            totals[key] += getattr(o, attr)
    return out


def _pending_conditions() -> list:
    return [
        Order.status == OrderStatus.PAID,
        Order.delivery_date.is_not(None),
        Order.payout_id.is_(None),
        Order.pending_amount_cents > 0,
    ]


async def pending_payouts(session: AsyncSession, *, seller_id: uuid.UUID | None = None) -> dict:
    conds = _pending_conditions()
    if seller_id is not None:
        conds.append(Order.seller_id == seller_id)

    orders = (
        await session.execute(select(Order).where(*conds).order_by(Order.delivery_date, Order.order_number))
    ).scalars().all()

    seller_ids = {o.seller_id for o in orders}
    sellers: dict[uuid.UUID, Seller] = {}
    if seller_ids:
        rows = (await session.execute(select(Seller).where(Seller.id.in_(seller_ids)))).scalars().all()
        sellers = {s.id: s for s in rows}

    currency = get_settings().default_currency.upper()
    groups: dict[uuid.UUID, PendingSellerGroup] = {}
    for o in orders:
        group = groups.setdefault(o.seller_id, PendingSellerGroup(seller=sellers[o.seller_id], currency=currency))
        group.orders.append(o)

    ordered = sorted(groups.values(), key=lambda g: (g.seller.business_name.lower(), str(g.seller.id)))
    by_currency = _pending_totals_by_currency(list(orders))
    main = by_currency.get(currency, {})
    return {
        "sellers": ordered,
        "summary": {
            "total_sellers": len(ordered),
            "total_orders": len(orders),
            "currency": currency,
            **{key: main.get(key, 0) for key, _ in _PENDING_TOTALS},
            "by_currency": by_currency,
        },
    }


async def _payout_orders(session: AsyncSession, payout_id: uuid.UUID) -> list[Order]:
    rows = (
        await session.execute(select(Order).where(Order.payout_id == payout_id).order_by(Order.order_number))
    ).scalars().all()
    return list(rows)


async def _replay(
    session: AsyncSession,
    *,
    existing: Payout,
    selected: list[uuid.UUID],
) -> PayoutResult:
    orders = await _payout_orders(session, existing.id)
    if {o.id for o in orders} != set(selected):
        raise PayoutConflictError(
            f"Idempotency key was already used for payout {existing.reference} with a different set of orders"
        )
    seller = await session.get(Seller, existing.seller_id)
    logger.info("Payout replayed", extra={"payout_reference": existing.reference})
    return PayoutResult(payout=existing, seller=seller, orders=orders, selected_order_ids=selected, replayed=True)


def _check_payable(order: Order) -> None:
    if order.status != OrderStatus.PAID:
        raise PayoutConflictError(f"Order {order.order_number} has not been paid by the buyer")
    if order.delivery_date is None:
        raise PayoutConflictError(f"Order {order.order_number} has not been delivered")
    if order.payout_id is not None:
        raise PayoutConflictError(f"Order {order.order_number} has already been paid out")
    if order.pending_amount_cents <= 0:
        raise PayoutConflictError(f"Order {order.order_number} has no pending amount")


async def process_payout(
    session: AsyncSession,
    *,
    actor: str,
    data: PayoutProcessIn,
    idempotency_key: str | None = None,
    now: datetime | None = None,
) -> PayoutResult:
    """
    Settle a batch of delivered, paid orders to their seller.

    All orders must belong to one seller and one currency. The whole batch is
    paid out or nothing is; a repeated submission with the same key returns the
    payout created by the first one.
    """
    selected = list(data.order_ids)
    key = (idempotency_key or "").strip() or derive_idempotency_key(
        order_ids=selected, bank_reference=data.bank_reference
    )

    existing = (await session.execute(select(Payout).where(Payout.idempotency_key == key))).scalar_one_or_none()
    if existing is not None:
        return await _replay(session, existing=existing, selected=selected)

    orders = (
        await session.execute(
            select(Order).where(Order.id.in_(selected)).order_by(Order.order_number).with_for_update()
        )
    ).scalars().all()
    missing = set(selected) - {o.id for o in orders}
    if missing:
        raise NotFoundError(f"Orders not found: {', '.join(sorted(str(i) for i in missing))}")

    for o in orders:
        _check_payable(o)

    seller_ids = {o.seller_id for o in orders}
    if len(seller_ids) != 1:
        raise PayoutConflictError("Selected orders belong to more than one seller; process one seller at a time")
    currencies = {o.currency for o in orders}
    if len(currencies) != 1:
        raise PayoutConflictError("Selected orders use more than one currency")

    seller_id = seller_ids.pop()
    seller = await session.get(Seller, seller_id)
    if seller is None:
        raise NotFoundError(f"Seller not found: {seller_id}")

    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    gross = sum(o.pending_amount_cents for o in orders)
    gateway_fee = apply_rate_bp(amount_cents=gross, rate_bp=settings.payout_gateway_fee_bp)

    payout = Payout(
        reference=await next_document_number(session, doc_type=DocumentType.PAYOUT, year=now.year),
        seller_id=seller_id,
        gross_amount_cents=gross,
        platform_commission_cents=sum(o.platform_commission_cents for o in orders),
        gateway_fee_cents=gateway_fee,
        net_amount_cents=gross - gateway_fee,
        currency=currencies.pop(),
        bank_reference=data.bank_reference,
        notes=data.notes,
        status=PayoutStatus.COMPLETED,
        processed_at=now,
        idempotency_key=key,
    )
    session.add(payout)
    try:
        await session.flush()
    except IntegrityError as e:
        raise PayoutConflictError("A payout with this idempotency key is already being processed") from e

    for o in orders:
        o.paid_out_amount_cents += o.pending_amount_cents
        o.pending_amount_cents = 0
        o.payout_id = payout.id
    await session.flush()

    await append_ledger_entry(
        session,
        seller_id=seller_id,
        entry_date=now.date(),
        entry_type=LedgerEntryType.PAYOUT,
        category="SELLER_PAYOUT",
        description=f"Payout {payout.reference} ({len(orders)} orders)",
        amount_cents=payout.net_amount_cents,
        reference=payout.reference,
        entity_type="payout",
        entity_id=payout.id,
    )

    await audit_log(
        session,
        actor=actor,
        entity_type="payout",
        entity_id=payout.id,
        action="process",
        after={
            "reference": payout.reference,
            "seller_id": seller_id,
            "order_ids": [o.id for o in orders],
            "gross_amount_cents": payout.gross_amount_cents,
            "gateway_fee_cents": payout.gateway_fee_cents,
            "net_amount_cents": payout.net_amount_cents,
            "bank_reference": payout.bank_reference,
        },
    )
    logger.info(
        "Payout processed",
        extra={
            "payout_reference": payout.reference,
            "seller_id": str(seller_id),
            "orders": len(orders),
            "gross_amount_cents": gross,
        },
    )
    return PayoutResult(payout=payout, seller=seller, orders=list(orders), selected_order_ids=selected)


def _like_term(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _search_condition(search: str):  # noqa: ANN202
    term = _like_term(search)
    statuses = [s for s in PayoutStatus if search.lower() in s.value.lower()]
    order_match = select(Order.payout_id).where(
        Order.payout_id.is_not(None), Order.order_number.ilike(term, escape="\\")
    )
    conds = [
        Payout.reference.ilike(term, escape="\\"),
        Payout.bank_reference.ilike(term, escape="\\"),
        Seller.business_name.ilike(term, escape="\\"),
        Seller.email.ilike(term, escape="\\"),
        Payout.id.in_(order_match),
    ]
    if statuses:
        conds.append(Payout.status.in_(statuses))
    return or_(*conds)


async def payout_history(
    session: AsyncSession,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    status: PayoutStatus | None = None,
    seller_id: uuid.UUID | None = None,
) -> dict:
    conds = []
    if status is not None:
        conds.append(Payout.status == status)
    if seller_id is not None:
        conds.append(Payout.seller_id == seller_id)
    search = (search or "").strip()
    if search:
        conds.append(_search_condition(search))
    where = and_(*conds) if conds else None

    def _filtered(stmt):  # noqa: ANN001, ANN202
        stmt = stmt.select_from(Payout).join(Seller, Seller.id == Payout.seller_id)
        return stmt.where(where) if where is not None else stmt

    totals_rows = (
        await session.execute(
            _filtered(
                select(
                    Payout.currency,
                    func.count(Payout.id),
                    func.coalesce(func.sum(Payout.net_amount_cents), 0),
                    func.coalesce(func.sum(Payout.platform_commission_cents), 0),
                    func.coalesce(func.sum(Payout.gross_amount_cents), 0),
                )
            ).group_by(Payout.currency)
        )
    ).all()
    by_currency = {
        cur: {
            "total_records": int(count),
            "total_payouts_cents": int(net),
            "total_platform_fee_cents": int(fee),
            "total_gross_cents": int(gross),
        }
        for cur, count, net, fee, gross in totals_rows
    }
    total = sum(t["total_records"] for t in by_currency.values())
    currency = get_settings().default_currency.upper()
    main = by_currency.get(currency, {})
    status_rows = (
        await session.execute(_filtered(select(Payout.status, func.count(Payout.id))).group_by(Payout.status))
    ).all()

    rows = (
        await session.execute(
            _filtered(select(Payout, Seller))
            .order_by(Payout.processed_at.desc(), Payout.created_at.desc(), Payout.reference.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    ).all()

    numbers: dict[uuid.UUID, list[str]] = {}
    if rows:
        order_rows = (
            await session.execute(
                select(Order.payout_id, Order.order_number)
                .where(Order.payout_id.in_([p.id for p, _ in rows]))
                .order_by(Order.order_number)
            )
        ).all()
        for payout_id, order_number in order_rows:
            numbers.setdefault(payout_id, []).append(order_number)

    return {
        "rows": [HistoryRow(payout=p, seller=s, order_numbers=numbers.get(p.id, [])) for p, s in rows],
        "total": total,
        "summary": {
            "currency": currency,
            "total_payouts_cents": main.get("total_payouts_cents", 0),
            "total_platform_fee_cents": main.get("total_platform_fee_cents", 0),
            "total_gross_cents": main.get("total_gross_cents", 0),
            "total_records": total,
            "status_counts": {s.value: int(c) for s, c in status_rows},
            "by_currency": by_currency,
        },
    }


async def get_payout(session: AsyncSession, payout_id: uuid.UUID) -> HistoryRow | None:
    payout = await session.get(Payout, payout_id)
    if payout is None:
        return None
    seller = await session.get(Seller, payout.seller_id)
    orders = await _payout_orders(session, payout.id)
    return HistoryRow(payout=payout, seller=seller, order_numbers=[o.order_number for o in orders])


async def seller_payout_summary(
    session: AsyncSession,
    *,
    seller_id: uuid.UUID,
    days: int = 30,
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days)

    paid_rows = (
        await session.execute(
            select(Payout.currency, func.count(Payout.id), func.coalesce(func.sum(Payout.net_amount_cents), 0))
            .where(
                Payout.seller_id == seller_id,
                Payout.status == PayoutStatus.COMPLETED,
                Payout.processed_at >= since,
            )
            .group_by(Payout.currency)
        )
    ).all()
    pending_rows = (
        await session.execute(
            select(Order.currency, func.count(Order.id), func.coalesce(func.sum(Order.pending_amount_cents), 0))
            .where(Order.seller_id == seller_id, *_pending_conditions())
            .group_by(Order.currency)
        )
    ).all()
    last_payout_at = (
        await session.execute(select(func.max(Payout.processed_at)).where(Payout.seller_id == seller_id))
    ).scalar_one()

    currency = get_settings().default_currency.upper()
    paid_out_by_currency = {cur: int(amount) for cur, _, amount in paid_rows}
    pending_by_currency = {cur: int(amount) for cur, _, amount in pending_rows}

    return {
        "days": days,
        "since": since,
        "currency": currency,
        "payout_count": sum(int(count) for _, count, _ in paid_rows),
        "total_paid_out_cents": paid_out_by_currency.get(currency, 0),
        "pending_order_count": sum(int(count) for _, count, _ in pending_rows),
        "total_pending_cents": pending_by_currency.get(currency, 0),
        "paid_out_by_currency": paid_out_by_currency,
        "pending_by_currency": pending_by_currency,
        "last_payout_at": last_payout_at,
    }
