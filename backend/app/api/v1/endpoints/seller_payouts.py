from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.admin_payouts import payout_history_out, pending_payouts_out
from app.core.db import get_session
from app.core.enums import PayoutStatus
from app.core.security import require_seller
from app.models.seller import Seller
from app.schemas.payouts import PayoutHistoryOut, PendingPayoutsOut, SellerPayoutSummaryOut
from app.services.payouts import payout_history, pending_payouts, seller_payout_summary


router = APIRouter()


@router.get("/pending", response_model=PendingPayoutsOut)
async def my_pending_payouts(
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> PendingPayoutsOut:
    return pending_payouts_out(await pending_payouts(session, seller_id=seller.id))


@router.get("/history", response_model=PayoutHistoryOut)
async def my_payout_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    status: PayoutStatus | None = Query(default=None),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> PayoutHistoryOut:
    data = await payout_history(session, page=page, limit=limit, search=search, status=status, seller_id=seller.id)
    return payout_history_out(data, page=page, limit=limit)


@router.get("/summary", response_model=SellerPayoutSummaryOut)
async def my_payout_summary(
    days: int = Query(default=30, ge=1, le=3650),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> SellerPayoutSummaryOut:
    return SellerPayoutSummaryOut(**await seller_payout_summary(session, seller_id=seller.id, days=days))
