from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.ledger_entry import LedgerEntry
from app.models.seller import Seller
from app.services.accounting import accounting_summary
from app.services.money import format_amount, format_money
from app.services.rendering import render_text


logger = logging.getLogger(__name__)

SAGE_PASTEL_HEADER = ["Date", "Reference", "Type", "Category", "Description", "Debit", "Credit", "Tax Category"]

_MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


async def sage_pastel_csv(
    session: AsyncSession,
    *,
    seller: Seller,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[str, bytes]:
    conds = [LedgerEntry.seller_id == seller.id]
    if date_from is not None:
        conds.append(LedgerEntry.entry_date >= date_from)
    if date_to is not None:
        conds.append(LedgerEntry.entry_date <= date_to)

    rows = (
        await session.execute(
            select(LedgerEntry).where(*conds).order_by(LedgerEntry.entry_date, LedgerEntry.created_at, LedgerEntry.id)
        )
    ).scalars().all()

    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(SAGE_PASTEL_HEADER)
    for r in rows:
        debit = format_amount(r.debit_cents) if r.debit_cents else ""
        credit = format_amount(r.credit_cents) if r.credit_cents else ""
        writer.writerow(
            [
                r.entry_date.strftime("%d/%m/%Y"),
                r.reference or "",
                r.entry_type.value,
                r.category,
                r.description,
                debit,
                credit,
                r.tax_category.value if r.tax_category else "",
            ]
        )

    stamp = (date_to or date.today()).isoformat()
    filename = f"sage-pastel-export-{stamp}.csv"
    logger.info("Sage Pastel export built", extra={"seller_id": str(seller.id), "rows": len(rows)})
    return filename, out.getvalue().encode("utf-8")


def _period_label(period: dict) -> str:
    if period["year"] is None:
        return "All time"
    if period["month"] is None:
        return f"Year {period['year']}"
    return f"{_MONTHS[period['month'] - 1]} {period['year']}"


def render_zimra_report(*, seller: Seller, summary: dict, currency: str, generated_at: datetime) -> str:
    settings = get_settings()

    def money(cents: int) -> str:
        return format_money(cents, currency)

    return render_text(
        template_name="zimra_report.txt",
        context={
            "seller": seller,
            "summary": summary,
            "period_label": _period_label(summary["period"]),
            "money": money,
            "generated_at": generated_at,
            "platform_name": settings.platform_name,
        },
    )


async def zimra_report(
    session: AsyncSession,
    *,
    seller: Seller,
    year: int | None = None,
    month: int | None = None,
    now: datetime | None = None,
) -> tuple[str, bytes]:
    summary = await accounting_summary(session, seller_id=seller.id, year=year, month=month)
    text = render_zimra_report(
        seller=seller,
        summary=summary,
        currency=get_settings().default_currency,
        generated_at=now or datetime.now(timezone.utc),
    )
    suffix = "all"
    if year is not None:
        suffix = f"{year:04d}" if month is None else f"{year:04d}-{month:02d}"
    return f"zimra-report-{suffix}.txt", text.encode("utf-8")
