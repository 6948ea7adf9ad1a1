from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import begin_tx, get_session
from app.core.enums import PayoutStatus
from app.core.security import require_basic_auth
from app.schemas.pagination import PaginationOut, page_count
from app.schemas.payouts import (
    PayoutHistoryItemOut,
    PayoutHistoryOut,
    PayoutHistorySummaryOut,
    PayoutOrderLineOut,
    PayoutOut,
    PayoutProcessIn,
    PayoutProcessOut,
    PendingOrderOut,
    PendingPayoutsOut,
    PendingSellerOut,
    PendingSummaryOut,
    SellerBriefOut,
)
from app.services.audit import admin_actor
from app.services.errors import NotFoundError
from app.services.payouts import (
    HistoryRow,
    PayoutResult,
    get_payout,
    payout_history,
    pending_payouts,
    process_payout,
)


router = APIRouter()


def pending_payouts_out(data: dict) -> PendingPayoutsOut:
    return PendingPayoutsOut(
        sellers=[
            PendingSellerOut(
                seller=SellerBriefOut.model_validate(g.seller),
                orders=[PendingOrderOut.model_validate(o) for o in g.orders],
                order_count=g.order_count,
                total_pending_cents=g.total_pending_cents,
                pending_by_currency=g.pending_by_currency,
            )
            for g in data["sellers"]
        ],
        summary=PendingSummaryOut(**data["summary"]),
    )


def history_item_out(row: HistoryRow) -> PayoutHistoryItemOut:
    return PayoutHistoryItemOut(
        **PayoutOut.model_validate(row.payout).model_dump(),
        seller=SellerBriefOut.model_validate(row.seller),
        order_numbers=row.order_numbers,
    )


def payout_history_out(data: dict, *, page: int, limit: int) -> PayoutHistoryOut:
    return PayoutHistoryOut(
        payouts=[history_item_out(r) for r in data["rows"]],
        pagination=PaginationOut(
            page=page, limit=limit, total=data["total"], pages=page_count(total=data["total"], limit=limit)
        ),
        summary=PayoutHistorySummaryOut(**data["summary"]),
    )


def _process_out(result: PayoutResult) -> PayoutProcessOut:
    return PayoutProcessOut(
        payout=PayoutOut.model_validate(result.payout),
        orders=[
            PayoutOrderLineOut(
                order_id=o.id,
                order_number=o.order_number,
                amount_cents=o.paid_out_amount_cents,
                status=o.payout_state,
                remaining_cents=o.pending_amount_cents,
            )
            for o in result.orders
        ],
        seller=SellerBriefOut.model_validate(result.seller),
        selected_order_ids=result.selected_order_ids,
        replayed=result.replayed,
    )


@router.get("/pending", response_model=PendingPayoutsOut)
async def list_pending_payouts(session: AsyncSession = Depends(get_session)) -> PendingPayoutsOut:
    return pending_payouts_out(await pending_payouts(session))


@router.post("/process", response_model=PayoutProcessOut)
async def process_payout_endpoint(
    data: PayoutProcessIn,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key", max_length=128),
    session: AsyncSession = Depends(get_session),
    username: str = Depends(require_basic_auth),
) -> PayoutProcessOut:
    try:
        async with begin_tx(session):
            result = await process_payout(
                session,
                actor=admin_actor(username),
                data=data,
                idempotency_key=idempotency_key,
            )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return _process_out(result)


@router.get("/history", response_model=PayoutHistoryOut)
async def list_payout_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    status: PayoutStatus | None = Query(default=None),
    seller_id: uuid.UUID | None = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> PayoutHistoryOut:
    data = await payout_history(session, page=page, limit=limit, search=search, status=status, seller_id=seller_id)
    return payout_history_out(data, page=page, limit=limit)


@router.get("/{payout_id}", response_model=PayoutHistoryItemOut)
async def get_payout_endpoint(payout_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> PayoutHistoryItemOut:
    row = await get_payout(session, payout_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Not found")
    return history_item_out(row)
