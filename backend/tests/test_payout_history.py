from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.api.v1.endpoints.admin_payouts import get_payout_endpoint, list_payout_history, list_pending_payouts
from app.api.v1.endpoints.seller_payouts import my_payout_history, my_payout_summary, my_pending_payouts
from app.core.enums import PayoutStatus
from app.schemas.payouts import PayoutProcessIn
from app.services.payouts import pending_payouts, process_payout, seller_payout_summary


ADMIN = "admin:test-user"
BASE = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def _history(session, **kwargs):
    params = {"page": 1, "limit": 20, "search": None, "status": None, "seller_id": None}
    params.update(kwargs)
    return await list_payout_history(session=session, **params)


async def _pay(session, order, *, ref: str, day: int):
    result = await process_payout(
        session,
        actor=ADMIN,
        data=PayoutProcessIn(order_ids=[order.id], bank_reference=ref),
        now=BASE + timedelta(days=day),
    )
    await session.commit()
    return result.payout


@pytest.mark.asyncio
async def test_pending_payouts_group_by_seller(db_session, make_seller, make_order) -> None:
    alpha = await make_seller(business_name="Alpha Spares")
    beta = await make_seller(business_name="Beta Tyres")
    await make_order(alpha, paid_cents=1_000)
    await make_order(alpha, paid_cents=3_000)
    await make_order(beta, paid_cents=2_000)
    # Not eligible: undelivered, unpaid.
    await make_order(beta, paid_cents=5_000, delivered=None)
    await make_order(beta)

    out = await list_pending_payouts(session=db_session)

    assert [g.seller.business_name for g in out.sellers] == ["Alpha Spares", "Beta Tyres"]
    assert [g.order_count for g in out.sellers] == [2, 1]
    assert [g.total_pending_cents for g in out.sellers] == [3_600, 1_800]
    assert out.summary.total_sellers == 2
    assert out.summary.total_orders == 3
    assert out.summary.total_paid_cents == 6_000
    assert out.summary.total_platform_fee_cents == 600
    assert out.summary.total_seller_amount_cents == 5_400
    assert out.summary.total_paid_out_cents == 0
    assert out.summary.total_pending_payouts_cents == 5_400

    only_beta = await pending_payouts(db_session, seller_id=beta.id)
    assert only_beta["summary"]["total_orders"] == 1

    mine = await my_pending_payouts(session=db_session, seller=alpha)
    assert mine.summary.total_orders == 2
    assert {o.pending_amount_cents for o in mine.sellers[0].orders} == {900, 2_700}


@pytest.mark.asyncio
async def test_history_pagination_and_page_beyond_range(db_session, make_seller, make_order) -> None:
    seller = await make_seller()
    orders = [await make_order(seller, paid_cents=1_000 * (i + 1)) for i in range(5)]
    payouts = [await _pay(db_session, o, ref=f"EFT-{i}", day=i) for i, o in enumerate(orders)]

    page1 = await _history(db_session, page=1, limit=2)
    assert page1.pagination.total == 5
    assert page1.pagination.pages == 3
    # Newest first.
    assert [p.id for p in page1.payouts] == [payouts[4].id, payouts[3].id]

    page3 = await _history(db_session, page=3, limit=2)
    assert [p.id for p in page3.payouts] == [payouts[0].id]

    beyond = await _history(db_session, page=9, limit=2)
    assert beyond.payouts == []
    assert beyond.pagination.total == 5
    assert beyond.pagination.pages == 3

    # Summary covers the full filtered set, not only the page.
    assert page1.summary.total_records == 5
    assert page1.summary.total_gross_cents == 900 * (1 + 2 + 3 + 4 + 5)
    assert page1.summary.total_payouts_cents == page1.summary.total_gross_cents
    assert page1.summary.total_platform_fee_cents == 100 * (1 + 2 + 3 + 4 + 5)
    assert page1.summary.status_counts == {PayoutStatus.COMPLETED.value: 5}


@pytest.mark.asyncio
async def test_history_search_spans_all_pages(db_session, make_seller, make_order) -> None:
    alpha = await make_seller(business_name="Alpha Spares", email="alpha@example.com")
    beta = await make_seller(business_name="Beta Tyres", email="beta@example.com")
    a_orders = [await make_order(alpha, paid_cents=1_000) for _ in range(3)]
    b_order = await make_order(beta, paid_cents=1_000)
    target_number = a_orders[0].order_number

    for i, o in enumerate(a_orders):
        await _pay(db_session, o, ref=f"ALPHA-{i}", day=i)
    beta_payout = await _pay(db_session, b_order, ref="ZB-778", day=10)

    by_seller = await _history(db_session, search="beta tyres", limit=1)
    assert [p.id for p in by_seller.payouts] == [beta_payout.id]
    assert by_seller.pagination.total == 1

    by_email = await _history(db_session, search="ALPHA@EXAMPLE", limit=1)
    assert by_email.pagination.total == 3
    assert len(by_email.payouts) == 1

    by_bank_ref = await _history(db_session, search="zb-77")
    assert [p.id for p in by_bank_ref.payouts] == [beta_payout.id]

    by_reference = await _history(db_session, search=beta_payout.reference)
    assert [p.id for p in by_reference.payouts] == [beta_payout.id]

    # Oldest alpha payout sits on the last page when unfiltered; search still finds it.
    by_order = await _history(db_session, search=target_number, limit=1)
    assert by_order.pagination.total == 1
    assert by_order.payouts[0].order_numbers == [target_number]

    by_status = await _history(db_session, search="complet")
    assert by_status.pagination.total == 4

    nothing = await _history(db_session, search="no-such-thing")
    assert nothing.payouts == []
    assert nothing.pagination.pages == 0
    assert nothing.summary.total_records == 0
    assert nothing.summary.status_counts == {}

    only_failed = await _history(db_session, status=PayoutStatus.FAILED)
    assert only_failed.pagination.total == 0


@pytest.mark.asyncio
async def test_history_search_treats_wildcards_literally(db_session, make_seller, make_order) -> None:
    seller = await make_seller(business_name="Gweru Motors", email="gweru@example.com")
    plain = await _pay(db_session, await make_order(seller, paid_cents=1_000), ref="EFT-1001", day=0)
    marked = await _pay(db_session, await make_order(seller, paid_cents=1_000), ref="EFT_50%\\A", day=1)

    for term in ("%", "_", "\\"):
        found = await _history(db_session, search=term)
        assert [p.id for p in found.payouts] == [marked.id], term

    found = await _history(db_session, search="EFT_")
    assert [p.id for p in found.payouts] == [marked.id]

    found = await _history(db_session, search="EFT")
    assert {p.id for p in found.payouts} == {plain.id, marked.id}


@pytest.mark.asyncio
async def test_seller_views_are_scoped(db_session, make_seller, make_order) -> None:
    alpha = await make_seller()
    beta = await make_seller()
    a_payout = await _pay(db_session, await make_order(alpha, paid_cents=2_000), ref="A-1", day=0)
    await _pay(db_session, await make_order(beta, paid_cents=2_000), ref="B-1", day=1)
    await make_order(alpha, paid_cents=1_000)

    mine = await my_payout_history(page=1, limit=20, search=None, status=None, session=db_session, seller=alpha)
    assert [p.id for p in mine.payouts] == [a_payout.id]

    detail = await get_payout_endpoint(a_payout.id, session=db_session)
    assert detail.seller.id == alpha.id
    assert len(detail.order_numbers) == 1

    summary = await seller_payout_summary(
        db_session, seller_id=alpha.id, days=30, now=BASE + timedelta(days=5)
    )
    assert summary["payout_count"] == 1
    assert summary["total_paid_out_cents"] == 1_800
    assert summary["pending_order_count"] == 1
    assert summary["total_pending_cents"] == 900
    assert summary["last_payout_at"] is not None

    out_of_window = await seller_payout_summary(
        db_session, seller_id=alpha.id, days=1, now=BASE + timedelta(days=40)
    )
    assert out_of_window["payout_count"] == 0
    assert out_of_window["total_paid_out_cents"] == 0

    via_endpoint = await my_payout_summary(days=3650, session=db_session, seller=alpha)
    assert via_endpoint.payout_count == 1


@pytest.mark.asyncio
async def test_totals_are_kept_apart_per_currency(db_session, make_seller, make_order) -> None:
    usd_seller = await make_seller(business_name="Alpha Spares")
    mixed = await make_seller(business_name="Beta Tyres")
    await make_order(usd_seller, paid_cents=1_000)
    await make_order(mixed, paid_cents=2_000)
    zwl_order = await make_order(mixed, paid_cents=50_000, currency="ZWL")

    pending = await list_pending_payouts(session=db_session)
    assert pending.summary.total_orders == 3
    assert pending.summary.currency == "USD"
    assert pending.summary.total_paid_cents == 3_000
    assert pending.summary.total_pending_payouts_cents == 2_700
    assert set(pending.summary.by_currency) == {"USD", "ZWL"}
    assert pending.summary.by_currency["ZWL"].order_count == 1
    assert pending.summary.by_currency["ZWL"].total_paid_cents == 50_000
    assert pending.summary.by_currency["ZWL"].total_pending_payouts_cents == 45_000

    beta = pending.sellers[1]
    assert beta.order_count == 2
    assert beta.total_pending_cents == 1_800
    assert beta.pending_by_currency == {"USD": 1_800, "ZWL": 45_000}

    await _pay(db_session, zwl_order, ref="ZWL-1", day=0)
    history = await _history(db_session)
    assert history.summary.total_records == 1
    assert history.summary.currency == "USD"
    assert history.summary.total_gross_cents == 0
    assert history.summary.by_currency["ZWL"].total_gross_cents == 45_000
    assert history.summary.by_currency["ZWL"].total_records == 1

    summary = await seller_payout_summary(db_session, seller_id=mixed.id, days=30, now=BASE + timedelta(days=5))
    assert summary["payout_count"] == 1
    assert summary["total_paid_out_cents"] == 0
    assert summary["paid_out_by_currency"] == {"ZWL": 45_000}
    assert summary["total_pending_cents"] == 1_800
    assert summary["pending_by_currency"] == {"USD": 1_800}
