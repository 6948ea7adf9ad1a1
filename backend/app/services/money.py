from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


_AMOUNT_RE = re.compile(r"^-?\d+(?:[.,]\d{1,2})?$")


def apply_rate_bp(*, amount_cents: int, rate_bp: int) -> int:
    """
    Integer-only percentage of an amount, rounded half up.

    rate_bp: basis points (e.g. 1000 = 10%).
    """
    if amount_cents < 0:
        raise ValueError("amount_cents must be >= 0")
    if rate_bp < 0 or rate_bp > 10_000:
        raise ValueError("rate_bp must be between 0 and 10000")
    return (amount_cents * rate_bp + 5_000) // 10_000


def split_commission(*, paid_cents: int, commission_rate_bp: int) -> tuple[int, int]:
    """Returns (platform_commission_cents, seller_net_cents); the two always add up to paid_cents."""
    commission = apply_rate_bp(amount_cents=paid_cents, rate_bp=commission_rate_bp)
    return commission, paid_cents - commission


def percentage(part_cents: int, whole_cents: int) -> Decimal:
    if whole_cents == 0:
        return Decimal("0.00")
    return (Decimal(part_cents) * 100 / Decimal(whole_cents)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_amount(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    cents_abs = abs(cents)
    return f"{sign}{cents_abs // 100}.{cents_abs % 100:02d}"


def format_money(cents: int, currency: str) -> str:
    sign = "-" if cents < 0 else ""
    cents_abs = abs(cents)
    symbol = "$" if currency.upper() == "USD" else f"{currency.upper()} "
    return f"{sign}{symbol}{cents_abs // 100:,}.{cents_abs % 100:02d}"


def parse_amount_to_cents(value: str) -> int:
    raw = value.strip().replace(" ", "").replace("_", "")
    if not raw:
        return 0
    if not _AMOUNT_RE.match(raw):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(raw.replace(",", "."))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
