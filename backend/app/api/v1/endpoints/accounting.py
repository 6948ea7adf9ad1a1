from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import begin_tx, get_session
from app.core.enums import LedgerEntryType
from app.core.security import require_seller
from app.models.seller import Seller
from app.schemas.accounting import (
    AccountingSummaryOut,
    ExpenseBreakdownItem,
    ExpenseCreate,
    ExpenseOut,
    LedgerEntryOut,
    LedgerLineOut,
    LedgerPageOut,
    TrialBalanceOut,
)
from app.schemas.pagination import PaginationOut, page_count
from app.services.accounting import (
    accounting_summary,
    create_expense,
    expense_breakdown,
    list_expenses,
    list_ledger_entries,
    trial_balance,
)
from app.services.exports import sage_pastel_csv, zimra_report


router = APIRouter()


def _attachment(filename: str, content: bytes, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/ledger", response_model=LedgerPageOut)
async def get_ledger(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    type: LedgerEntryType | None = Query(default=None),  # noqa: A002
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> LedgerPageOut:
    lines, total = await list_ledger_entries(
        session,
        seller_id=seller.id,
        page=page,
        limit=limit,
        entry_type=type,
        date_from=date_from,
        date_to=date_to,
    )
    return LedgerPageOut(
        entries=[
            LedgerLineOut(**LedgerEntryOut.model_validate(line.entry).model_dump(), balance_cents=line.balance_cents)
            for line in lines
        ],
        pagination=PaginationOut(page=page, limit=limit, total=total, pages=page_count(total=total, limit=limit)),
    )


@router.get("/summary", response_model=AccountingSummaryOut)
async def get_summary(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> AccountingSummaryOut:
    try:
        data = await accounting_summary(session, seller_id=seller.id, year=year, month=month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return AccountingSummaryOut(**data)


@router.post("/expenses", response_model=ExpenseOut, status_code=201)
async def create_expense_endpoint(
    data: ExpenseCreate,
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> ExpenseOut:
    async with begin_tx(session):
        expense = await create_expense(session, seller_id=seller.id, data=data)
    return ExpenseOut.model_validate(expense)


@router.get("/expenses", response_model=list[ExpenseOut])
async def get_expenses(
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> list[ExpenseOut]:
    return [ExpenseOut.model_validate(e) for e in await list_expenses(session, seller_id=seller.id)]


@router.get("/expenses/breakdown", response_model=list[ExpenseBreakdownItem])
async def get_expense_breakdown(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> list[ExpenseBreakdownItem]:
    try:
        rows = await expense_breakdown(session, seller_id=seller.id, year=year, month=month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [ExpenseBreakdownItem(**r) for r in rows]


@router.get("/export/sage-pastel")
async def export_sage_pastel(
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> Response:
    if date_from is not None and date_to is not None and date_from > date_to:
        raise HTTPException(status_code=400, detail="'from' must not be after 'to'")
    filename, content = await sage_pastel_csv(session, seller=seller, date_from=date_from, date_to=date_to)
    return _attachment(filename, content, "text/csv")


@router.get("/reports/zimra")
async def export_zimra_report(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> Response:
    try:
        filename, content = await zimra_report(session, seller=seller, year=year, month=month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _attachment(filename, content, "text/plain; charset=utf-8")


@router.get("/reports/trial-balance", response_model=TrialBalanceOut)
async def get_trial_balance(
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> TrialBalanceOut:
    try:
        data = await trial_balance(session, seller_id=seller.id, date_from=date_from, date_to=date_to)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TrialBalanceOut(**data)
