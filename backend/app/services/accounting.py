from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ExpenseCategory, LedgerEntryType, TaxCategory
from app.models.expense import Expense
from app.models.ledger_entry import LedgerEntry
from app.schemas.accounting import ExpenseCreate
from app.services.audit import audit_log, seller_actor
from app.services.money import percentage


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Period:
    year: int | None
    month: int | None
    start: date | None
    end: date | None  # exclusive


def period_range(*, year: int | None, month: int | None) -> Period:
    if year is None:
        if month is not None:
            raise ValueError("month requires year")
        return Period(year=None, month=None, start=None, end=None)
    if month is None:
        return Period(year=year, month=None, start=date(year, 1, 1), end=date(year + 1, 1, 1))
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return Period(year=year, month=month, start=start, end=end)


def _in_period(column, period: Period) -> list:  # noqa: ANN001
    conds = []
    if period.start is not None:
        conds.append(column >= period.start)
    if period.end is not None:
        conds.append(column < period.end)
    return conds


async def append_ledger_entry(
    session: AsyncSession,
    *,
    seller_id: uuid.UUID,
    entry_date: date,
    entry_type: LedgerEntryType,
    category: str,
    description: str,
    amount_cents: int,
    entity_type: str,
    entity_id: uuid.UUID,
    reference: str | None = None,
    tax_category: TaxCategory | None = None,
) -> LedgerEntry:
    entry = LedgerEntry(
        seller_id=seller_id,
        entry_date=entry_date,
        entry_type=entry_type,
        category=category[:100],
        description=description[:500],
        amount_cents=amount_cents,
        reference=reference,
        tax_category=tax_category,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    session.add(entry)
    await session.flush()
    return entry


_LEDGER_ORDER = (LedgerEntry.entry_date.desc(), LedgerEntry.created_at.desc(), LedgerEntry.id.desc())


@dataclass(frozen=True)
class LedgerLine:
    entry: LedgerEntry
    # Running net (credits minus debits) of the filtered entries up to and including this one.
    balance_cents: int


async def list_ledger_entries(
    session: AsyncSession,
    *,
    seller_id: uuid.UUID,
    page: int = 1,
    limit: int = 50,
    entry_type: LedgerEntryType | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[list[LedgerLine], int]:
    """Newest-first page of ledger lines with a running balance.

    The balance accumulates oldest to newest over the whole filtered set, so
    it does not depend on which page is requested.
    """
    conds = [LedgerEntry.seller_id == seller_id]
    if entry_type is not None:
        conds.append(LedgerEntry.entry_type == entry_type)
    if date_from is not None:
        conds.append(LedgerEntry.entry_date >= date_from)
    if date_to is not None:
        conds.append(LedgerEntry.entry_date <= date_to)

    total, net = (
        await session.execute(
            select(func.count(LedgerEntry.id), func.coalesce(func.sum(LedgerEntry.amount_cents), 0)).where(
                and_(*conds)
            )
        )
    ).one()
    offset = (page - 1) * limit

    newer = 0
    if offset:
        skipped = select(LedgerEntry.amount_cents).where(and_(*conds)).order_by(*_LEDGER_ORDER).limit(offset).subquery()
        newer = int((await session.execute(select(func.coalesce(func.sum(skipped.c.amount_cents), 0)))).scalar_one())

    rows = (
        await session.execute(
            select(LedgerEntry).where(and_(*conds)).order_by(*_LEDGER_ORDER).offset(offset).limit(limit)
        )
    ).scalars().all()

    balance = int(net) - newer
    lines = []
    for e in rows:
        lines.append(LedgerLine(entry=e, balance_cents=balance))
        balance -= e.amount_cents
    return lines, int(total)


async def create_expense(session: AsyncSession, *, seller_id: uuid.UUID, data: ExpenseCreate) -> Expense:
    expense = Expense(
        seller_id=seller_id,
        expense_date=data.expense_date,
        category=data.category,
        amount_cents=data.amount_cents,
        description=data.description,
        tax_category=data.tax_category,
        receipt=data.receipt,
    )
    session.add(expense)
    await session.flush()

    entry = await append_ledger_entry(
        session,
        seller_id=seller_id,
        entry_date=data.expense_date,
        entry_type=LedgerEntryType.EXPENSE,
        category=data.category.value,
        description=data.description,
        amount_cents=-data.amount_cents,
        tax_category=data.tax_category,
        entity_type="expense",
        entity_id=expense.id,
    )
    expense.ledger_entry_id = entry.id
    await session.flush()

    await audit_log(
        session,
        actor=seller_actor(seller_id),
        entity_type="expense",
        entity_id=expense.id,
        action="create",
        after={
            "category": expense.category,
            "amount_cents": expense.amount_cents,
            "expense_date": expense.expense_date,
            "tax_category": expense.tax_category,
        },
    )
    logger.info("Expense recorded", extra={"seller_id": str(seller_id), "amount_cents": expense.amount_cents})
    return expense


async def list_expenses(session: AsyncSession, *, seller_id: uuid.UUID) -> list[Expense]:
    rows = (
        await session.execute(
            select(Expense)
            .where(Expense.seller_id == seller_id)
            .order_by(Expense.expense_date.desc(), Expense.created_at.desc())
        )
    ).scalars().all()
    return list(rows)


async def expense_breakdown(
    session: AsyncSession,
    *,
    seller_id: uuid.UUID,
    year: int | None = None,
    month: int | None = None,
) -> list[dict]:
    period = period_range(year=year, month=month)
    rows = (
        await session.execute(
            select(Expense.category, func.coalesce(func.sum(Expense.amount_cents), 0), func.count(Expense.id))
            .where(Expense.seller_id == seller_id, *_in_period(Expense.expense_date, period))
            .group_by(Expense.category)
        )
    ).all()
    total = sum(int(amount) for _, amount, _ in rows)
    out = [
        {
            "category": category.value,
            "amount_cents": int(amount),
            "percentage": percentage(int(amount), total),
            "count": int(count),
        }
        for category, amount, count in rows
    ]
    out.sort(key=lambda r: (-r["amount_cents"], r["category"]))
    return out


def compute_net_profit(*, total_sales_cents: int, total_commissions_cents: int, total_expenses_cents: int) -> int:
    return total_sales_cents - total_commissions_cents - total_expenses_cents


async def accounting_summary(
    session: AsyncSession,
    *,
    seller_id: uuid.UUID,
    year: int | None = None,
    month: int | None = None,
) -> dict:
    period = period_range(year=year, month=month)
    rows = (
        await session.execute(
            select(LedgerEntry.entry_type, LedgerEntry.category, func.coalesce(func.sum(LedgerEntry.amount_cents), 0))
            .where(LedgerEntry.seller_id == seller_id, *_in_period(LedgerEntry.entry_date, period))
            .group_by(LedgerEntry.entry_type, LedgerEntry.category)
        )
    ).all()

    sums: dict[LedgerEntryType, int] = {t: 0 for t in LedgerEntryType}
    expenses_by_category: dict[str, int] = {}
    for entry_type, category, amount in rows:
        sums[entry_type] += int(amount)
        if entry_type == LedgerEntryType.EXPENSE:
            expenses_by_category[category] = expenses_by_category.get(category, 0) - int(amount)

    total_sales = sums[LedgerEntryType.SALE]
    total_commissions = abs(sums[LedgerEntryType.COMMISSION])
    total_refunds = abs(sums[LedgerEntryType.REFUND])
    # Expense lines are stored as outflows (negative).
    total_expenses = -sums[LedgerEntryType.EXPENSE]

    net_profit = compute_net_profit(
        total_sales_cents=total_sales,
        total_commissions_cents=total_commissions,
        total_expenses_cents=total_expenses,
    )

    return {
        "period": {"year": period.year, "month": period.month, "start": period.start, "end": period.end},
        "total_sales_cents": total_sales,
        "total_refunds_cents": total_refunds,
        "net_sales_cents": total_sales - total_refunds,
        "total_commissions_cents": total_commissions,
        "total_expenses_cents": total_expenses,
        "expenses_by_category_cents": dict(sorted(expenses_by_category.items())),
        "total_payouts_cents": sums[LedgerEntryType.PAYOUT],
        "net_profit_cents": net_profit,
        "profit_margin": percentage(net_profit, total_sales),
    }


@dataclass(frozen=True)
class Account:
    code: str
    name: str
    type: str


BANK = Account("1000", "Bank", "ASSET")
PLATFORM_CLEARING = Account("1100", "Platform clearing", "ASSET")
SALES = Account("4000", "Sales", "REVENUE")
SALES_RETURNS = Account("4100", "Sales returns", "REVENUE")
PLATFORM_COMMISSION = Account("5000", "Platform commission", "EXPENSE")

# Debit and credit account for an entry with its usual sign. An entry with the
# opposite sign (a correction) posts the other way round.
_POSTINGS: dict[LedgerEntryType, tuple[Account, Account]] = {
    LedgerEntryType.SALE: (PLATFORM_CLEARING, SALES),
    LedgerEntryType.COMMISSION: (PLATFORM_COMMISSION, PLATFORM_CLEARING),
    LedgerEntryType.REFUND: (SALES_RETURNS, PLATFORM_CLEARING),
    LedgerEntryType.PAYOUT: (BANK, PLATFORM_CLEARING),
}
_INFLOW_TYPES = frozenset({LedgerEntryType.SALE, LedgerEntryType.PAYOUT})


def expense_account(category: str) -> Account:
    codes = {c.value: f"6{(i + 1) * 10:03d}" for i, c in enumerate(ExpenseCategory)}
    return Account(codes.get(category, "6990"), f"Expenses: {category}", "EXPENSE")


def _accounts_for(entry_type: LedgerEntryType, category: str, amount_cents: int) -> tuple[Account, Account]:
    if entry_type == LedgerEntryType.EXPENSE:
        debit, credit = expense_account(category), BANK
    else:
        debit, credit = _POSTINGS[entry_type]
    if (amount_cents > 0) != (entry_type in _INFLOW_TYPES):
        debit, credit = credit, debit
    return debit, credit


async def trial_balance(
    session: AsyncSession,
    *,
    seller_id: uuid.UUID,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict:
    """Double-entry view of a seller's ledger.

    Every ledger line posts its absolute amount to one debit and one credit
    account (see `_POSTINGS`). An account's balance is debits minus credits,
    so debit balances are positive.
    """
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValueError("'from' must not be after 'to'")

    conds = [LedgerEntry.seller_id == seller_id]
    if date_from is not None:
        conds.append(LedgerEntry.entry_date >= date_from)
    if date_to is not None:
        conds.append(LedgerEntry.entry_date <= date_to)

    inflow = func.coalesce(func.sum(case((LedgerEntry.amount_cents > 0, LedgerEntry.amount_cents), else_=0)), 0)
    outflow = func.coalesce(func.sum(case((LedgerEntry.amount_cents < 0, -LedgerEntry.amount_cents), else_=0)), 0)
    rows = (
        await session.execute(
            select(LedgerEntry.entry_type, LedgerEntry.category, inflow, outflow)
            .where(and_(*conds))
            .group_by(LedgerEntry.entry_type, LedgerEntry.category)
        )
    ).all()

    totals: dict[Account, dict[str, int]] = {}

    def _post(entry_type: LedgerEntryType, category: str, signed: int) -> None:
        if not signed:
            return
        debit, credit = _accounts_for(entry_type, category, signed)
        totals.setdefault(debit, {"debit": 0, "credit": 0})["debit"] += abs(signed)
        totals.setdefault(credit, {"debit": 0, "credit": 0})["credit"] += abs(signed)

    for entry_type, category, amount_in, amount_out in rows:
        _post(entry_type, category, int(amount_in))
        _post(entry_type, category, -int(amount_out))

    accounts = [
        {
            "code": account.code,
            "name": account.name,
            "type": account.type,
            "total_debit_cents": t["debit"],
            "total_credit_cents": t["credit"],
            "balance_cents": t["debit"] - t["credit"],
        }
        for account, t in sorted(totals.items(), key=lambda kv: (kv[0].code, kv[0].name))
    ]
    total_debits = sum(a["total_debit_cents"] for a in accounts)
    total_credits = sum(a["total_credit_cents"] for a in accounts)
    return {
        "date_from": date_from,
        "date_to": date_to,
        "accounts": accounts,
        "total_debits_cents": total_debits,
        "total_credits_cents": total_credits,
        "difference_cents": total_debits - total_credits,
        "is_balanced": total_debits == total_credits,
    }
