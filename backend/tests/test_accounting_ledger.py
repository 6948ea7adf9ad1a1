from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import select

from app.api.v1.endpoints.accounting import (
    create_expense_endpoint,
    get_expense_breakdown,
    get_ledger,
    get_summary,
    get_trial_balance,
)
from app.core.enums import ExpenseCategory, LedgerEntryType, TaxCategory
from app.models.errors import ImmutableRecordError
from app.models.expense import Expense
from app.models.ledger_entry import LedgerEntry
from app.schemas.accounting import ExpenseCreate
from app.services.accounting import (
    accounting_summary,
    append_ledger_entry,
    compute_net_profit,
    create_expense,
    list_expenses,
    period_range,
)


async def _entry(session, seller, *, entry_type: LedgerEntryType, amount: int, on: date, category: str = "X"):
    return await append_ledger_entry(
        session,
        seller_id=seller.id,
        entry_date=on,
        entry_type=entry_type,
        category=category,
        description=f"{entry_type} {amount}",
        amount_cents=amount,
        entity_type="test",
        entity_id=uuid.uuid4(),
    )


def _expense(**overrides) -> ExpenseCreate:
    payload = {
        "date": "2026-03-14",
        "amountCents": 2_500,
        "category": "FUEL",
        "description": "Delivery van diesel",
        "taxCategory": "VATABLE",
    }
    payload.update(overrides)
    return ExpenseCreate.model_validate(payload)


@pytest.mark.parametrize(
    ("sales", "commissions", "expenses"),
    [(0, 0, 0), (10_000, 1_000, 2_500), (0, 0, 4_000), (500, 50, 10_000), (-300, 0, 0), (1, 1, 1)],
)
def test_net_profit_formula(sales: int, commissions: int, expenses: int) -> None:
    assert compute_net_profit(
        total_sales_cents=sales, total_commissions_cents=commissions, total_expenses_cents=expenses
    ) == sales - commissions - expenses


def test_period_range() -> None:
    march = period_range(year=2026, month=3)
    assert (march.start, march.end) == (date(2026, 3, 1), date(2026, 4, 1))
    december = period_range(year=2026, month=12)
    assert december.end == date(2027, 1, 1)
    year = period_range(year=2026, month=None)
    assert (year.start, year.end) == (date(2026, 1, 1), date(2027, 1, 1))
    assert period_range(year=None, month=None).start is None
    with pytest.raises(ValueError):
        period_range(year=None, month=3)


@pytest.mark.asyncio
async def test_create_expense_appends_negative_ledger_line(db_session, make_seller) -> None:
    seller = await make_seller()

    out = await create_expense_endpoint(_expense(), session=db_session, seller=seller)

    assert out.expense_date == date(2026, 3, 14)
    assert out.category == ExpenseCategory.FUEL
    assert out.amount_cents == 2_500
    assert out.ledger_entry_id is not None

    entry = await db_session.get(LedgerEntry, out.ledger_entry_id)
    assert entry.entry_type == LedgerEntryType.EXPENSE
    assert entry.amount_cents == -2_500
    assert entry.category == "FUEL"
    assert entry.tax_category == TaxCategory.VATABLE
    assert entry.entity_id == out.id

    expenses = await list_expenses(db_session, seller_id=seller.id)
    assert [e.id for e in expenses] == [out.id]


def test_expense_validation() -> None:
    with pytest.raises(ValidationError):
        _expense(amountCents=0)
    with pytest.raises(ValidationError):
        _expense(category="BRIBES")
    with pytest.raises(ValidationError):
        _expense(description="   ")
    assert _expense(taxCategory=None).tax_category is None


@pytest.mark.asyncio
async def test_summary_matches_net_profit_formula(db_session, make_seller, make_order) -> None:
    seller = await make_seller()
    # SALE +10000 and COMMISSION -1000, paid 2026-03-05.
    await make_order(seller, paid_cents=10_000)
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=2_500))
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=500, category="RENT"))
    await _entry(db_session, seller, entry_type=LedgerEntryType.REFUND, amount=-700, on=date(2026, 3, 20))
    await _entry(db_session, seller, entry_type=LedgerEntryType.PAYOUT, amount=9_000, on=date(2026, 3, 25))
    # Zero and negative-sale lines still follow the formula.
    await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=0, on=date(2026, 3, 26))
    await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=-200, on=date(2026, 3, 27))
    # Outside March.
    await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=50_000, on=date(2026, 4, 1))
    await db_session.commit()

    s = await accounting_summary(db_session, seller_id=seller.id, year=2026, month=3)

    assert s["total_sales_cents"] == 9_800
    assert s["total_commissions_cents"] == 1_000
    assert s["total_refunds_cents"] == 700
    assert s["net_sales_cents"] == 9_100
    assert s["total_expenses_cents"] == 3_000
    assert s["expenses_by_category_cents"] == {"FUEL": 2_500, "RENT": 500}
    assert s["total_payouts_cents"] == 9_000
    assert s["net_profit_cents"] == 9_800 - 1_000 - 3_000
    assert s["profit_margin"] == Decimal("59.18")

    all_time = await get_summary(year=None, month=None, session=db_session, seller=seller)
    assert all_time.total_sales_cents == 59_800
    assert all_time.net_profit_cents == all_time.total_sales_cents - 1_000 - 3_000

    with pytest.raises(HTTPException) as exc:
        await get_summary(year=None, month=3, session=db_session, seller=seller)
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_summary_without_sales_has_zero_margin(db_session, make_seller) -> None:
    seller = await make_seller()
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=1_200))
    await db_session.commit()

    s = await accounting_summary(db_session, seller_id=seller.id, year=2026, month=3)
    assert s["total_sales_cents"] == 0
    assert s["net_profit_cents"] == -1_200
    assert s["profit_margin"] == Decimal("0.00")


@pytest.mark.asyncio
async def test_ledger_is_paginated_filtered_and_scoped(db_session, make_seller) -> None:
    seller = await make_seller()
    other = await make_seller()
    for day in range(1, 6):
        await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=day * 100, on=date(2026, 3, day))
    await _entry(db_session, seller, entry_type=LedgerEntryType.COMMISSION, amount=-10, on=date(2026, 3, 3))
    await _entry(db_session, other, entry_type=LedgerEntryType.SALE, amount=999, on=date(2026, 3, 3))
    await db_session.commit()

    page = await get_ledger(
        page=1, limit=2, type=None, date_from=None, date_to=None, session=db_session, seller=seller
    )
    assert page.pagination.total == 6
    assert page.pagination.pages == 3
    assert [e.entry_date for e in page.entries] == [date(2026, 3, 5), date(2026, 3, 4)]

    sales_only = await get_ledger(
        page=1,
        limit=50,
        type=LedgerEntryType.SALE,
        date_from=date(2026, 3, 2),
        date_to=date(2026, 3, 4),
        session=db_session,
        seller=seller,
    )
    assert sorted(e.amount_cents for e in sales_only.entries) == [200, 300, 400]

    beyond = await get_ledger(page=5, limit=2, type=None, date_from=None, date_to=None, session=db_session, seller=seller)
    assert beyond.entries == []


@pytest.mark.asyncio
async def test_ledger_lines_carry_debit_credit_and_running_balance(db_session, make_seller) -> None:
    seller = await make_seller()
    for day in range(1, 6):
        await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=day * 100, on=date(2026, 3, day))
    await _entry(db_session, seller, entry_type=LedgerEntryType.EXPENSE, amount=-50, on=date(2026, 3, 6))
    await db_session.commit()

    balances = []
    for page in (1, 2, 3):
        out = await get_ledger(
            page=page, limit=2, type=None, date_from=None, date_to=None, session=db_session, seller=seller
        )
        balances += [e.balance_cents for e in out.entries]
        if page == 1:
            newest = out.entries[0]
            assert (newest.debit_cents, newest.credit_cents) == (50, 0)
            assert (out.entries[1].debit_cents, out.entries[1].credit_cents) == (0, 500)

    # Newest first; the oldest line's balance is its own amount.
    assert balances == [1_450, 1_500, 1_000, 600, 300, 100]

    filtered = await get_ledger(
        page=1,
        limit=50,
        type=LedgerEntryType.SALE,
        date_from=date(2026, 3, 4),
        date_to=None,
        session=db_session,
        seller=seller,
    )
    assert [e.balance_cents for e in filtered.entries] == [900, 400]


@pytest.mark.asyncio
async def test_trial_balance_posts_each_line_twice(db_session, make_seller, make_order) -> None:
    seller = await make_seller()
    await make_order(seller, paid_cents=10_000)
    await _entry(
        db_session, seller, entry_type=LedgerEntryType.EXPENSE, amount=-2_500, on=date(2026, 3, 7), category="FUEL"
    )
    await _entry(db_session, seller, entry_type=LedgerEntryType.REFUND, amount=-500, on=date(2026, 3, 8))
    await _entry(db_session, seller, entry_type=LedgerEntryType.PAYOUT, amount=9_000, on=date(2026, 3, 9))
    # A reversed sale posts the other way round.
    await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=-200, on=date(2026, 3, 10))
    await db_session.commit()

    out = await get_trial_balance(date_from=None, date_to=None, session=db_session, seller=seller)

    accounts = {a.code: (a.total_debit_cents, a.total_credit_cents, a.balance_cents) for a in out.accounts}
    assert accounts == {
        "1000": (9_000, 2_500, 6_500),
        "1100": (10_000, 10_700, -700),
        "4000": (200, 10_000, -9_800),
        "4100": (500, 0, 500),
        "5000": (1_000, 0, 1_000),
        "6040": (2_500, 0, 2_500),
    }
    assert [a.code for a in out.accounts] == sorted(accounts)
    assert next(a for a in out.accounts if a.code == "6040").name == "Expenses: FUEL"
    assert out.total_debits_cents == out.total_credits_cents == 23_200
    assert out.difference_cents == 0
    assert out.is_balanced is True

    empty = await get_trial_balance(date_from=date(2026, 4, 1), date_to=None, session=db_session, seller=seller)
    assert empty.accounts == []
    assert empty.is_balanced is True

    with pytest.raises(HTTPException) as exc:
        await get_trial_balance(
            date_from=date(2026, 4, 1), date_to=date(2026, 3, 1), session=db_session, seller=seller
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_expense_breakdown_shares(db_session, make_seller) -> None:
    seller = await make_seller()
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=3_000, category="RENT"))
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=1_000, category="FUEL"))
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=1_000, category="FUEL"))
    await create_expense(db_session, seller_id=seller.id, data=_expense(amountCents=1_000, category="WAGES", date="2026-04-02"))
    await db_session.commit()

    rows = await get_expense_breakdown(year=2026, month=3, session=db_session, seller=seller)
    assert [(r.category, r.amount_cents, r.count) for r in rows] == [("RENT", 3_000, 1), ("FUEL", 2_000, 2)]
    assert [r.percentage for r in rows] == [Decimal("60.00"), Decimal("40.00")]

    whole_year = await get_expense_breakdown(year=2026, month=None, session=db_session, seller=seller)
    assert sum(r.amount_cents for r in whole_year) == 6_000


@pytest.mark.asyncio
async def test_ledger_entries_are_append_only(db_session, make_seller) -> None:
    seller = await make_seller()
    entry = await _entry(db_session, seller, entry_type=LedgerEntryType.SALE, amount=100, on=date(2026, 3, 1))
    seller_id = seller.id
    await db_session.commit()

    entry.amount_cents = 1
    with pytest.raises(ImmutableRecordError):
        await db_session.flush()
    await db_session.rollback()

    fresh = (await db_session.execute(select(LedgerEntry).where(LedgerEntry.seller_id == seller_id))).scalar_one()
    await db_session.delete(fresh)
    with pytest.raises(ImmutableRecordError):
        await db_session.flush()


@pytest.mark.asyncio
async def test_expense_ledger_link_survives_commit(db_session, make_seller) -> None:
    seller = await make_seller()
    expense = await create_expense(db_session, seller_id=seller.id, data=_expense())
    await db_session.commit()

    stored = (await db_session.execute(select(Expense).where(Expense.id == expense.id))).scalar_one()
    linked = await db_session.get(LedgerEntry, stored.ledger_entry_id)
    assert linked.entity_type == "expense"
    assert linked.entity_id == stored.id
