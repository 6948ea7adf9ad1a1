from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine

# Script entrypoint: ensure `backend/` is importable.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.core.enums import (  # noqa: E402
    DocumentType,
    ExpenseCategory,
    LedgerEntryType,
    OrderStatus,
    PayoutStatus,
    SellerStatus,
    TaxCategory,
)


EXPECTED_ENUMS: dict[str, list[str]] = {
    "seller_status": [e.value for e in SellerStatus],
    "order_status": [e.value for e in OrderStatus],
    "payout_status": [e.value for e in PayoutStatus],
    "ledger_entry_type": [e.value for e in LedgerEntryType],
    "tax_category": [e.value for e in TaxCategory],
    "expense_category": [e.value for e in ExpenseCategory],
    "document_type": [e.value for e in DocumentType],
}

# Each query returns offending rows; an empty result means the invariant holds.
DATA_INVARIANTS: dict[str, str] = {
    "order seller_net = paid - platform_commission": """
        SELECT order_number FROM orders
        WHERE seller_net_amount_cents <> paid_amount_cents - platform_commission_cents
    """,
    "order received never exceeds total": """
        SELECT order_number FROM orders
        WHERE received_amount_cents > total_amount_cents
    """,
    "paid orders received their full total": """
        SELECT order_number FROM orders
        WHERE status = 'PAID' AND received_amount_cents <> paid_amount_cents
    """,
    "order seller_net = paid_out + pending": """
        SELECT order_number FROM orders
        WHERE seller_net_amount_cents <> paid_out_amount_cents + pending_amount_cents
    """,
    "paid-out orders have no pending amount": """
        SELECT order_number FROM orders
        WHERE payout_id IS NOT NULL AND pending_amount_cents <> 0
    """,
    "payout gross = sum of its orders' paid-out amounts": """
        SELECT p.reference FROM payouts p
        LEFT JOIN orders o ON o.payout_id = p.id
        GROUP BY p.id, p.reference, p.gross_amount_cents
        HAVING p.gross_amount_cents <> COALESCE(SUM(o.paid_out_amount_cents), 0)
    """,
    "payout orders belong to the payout's seller": """
        SELECT p.reference FROM payouts p
        JOIN orders o ON o.payout_id = p.id
        WHERE o.seller_id <> p.seller_id
    """,
}


async def _check_enums(conn: AsyncConnection) -> bool:
    ok = True
    for type_name, expected in EXPECTED_ENUMS.items():
        rows = (
            await conn.execute(
                text(
                    """
                    SELECT e.enumlabel
                    FROM pg_enum e
                    JOIN pg_type t ON t.oid = e.enumtypid
                    JOIN pg_namespace n ON n.oid = t.typnamespace
                    WHERE n.nspname = 'public' AND t.typname = :type_name
                    ORDER BY e.enumsortorder
                    """
                ),
                {"type_name": type_name},
            )
        ).all()
        actual = [r[0] for r in rows]

        missing = [v for v in expected if v not in actual]
        if missing:
            print(f"Enum type '{type_name}' is missing values: {missing}", file=sys.stderr)
            print(f"Expected: {expected}", file=sys.stderr)
            print(f"Actual:   {actual}", file=sys.stderr)
            ok = False
    return ok


async def _check_data(conn: AsyncConnection) -> bool:
    ok = True
    for name, sql in DATA_INVARIANTS.items():
        offenders = [r[0] for r in (await conn.execute(text(sql))).all()]
        if offenders:
            shown = ", ".join(str(o) for o in offenders[:20])
            print(f"Invariant violated ({name}): {len(offenders)} row(s): {shown}", file=sys.stderr)
            ok = False
    return ok


async def _main() -> int:
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL is required.", file=sys.stderr)
        return 2

    engine = create_async_engine(url, pool_pre_ping=True)
    try:
        async with engine.connect() as conn:
            enums_ok = await _check_enums(conn)
            data_ok = await _check_data(conn)
    finally:
        await engine.dispose()

    if not (enums_ok and data_ok):
        return 1
    print("DB invariants ok (enums and payout amounts).")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_main()))
