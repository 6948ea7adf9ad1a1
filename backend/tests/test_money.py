from __future__ import annotations

from decimal import Decimal

import pytest

from app.services.money import (
    apply_rate_bp,
    format_amount,
    format_money,
    parse_amount_to_cents,
    percentage,
    split_commission,
)


def test_apply_rate_bp_rounds_half_up() -> None:
    assert apply_rate_bp(amount_cents=1000, rate_bp=1000) == 100
    assert apply_rate_bp(amount_cents=5, rate_bp=1000) == 1
    assert apply_rate_bp(amount_cents=4, rate_bp=1000) == 0
    assert apply_rate_bp(amount_cents=0, rate_bp=1000) == 0
    assert apply_rate_bp(amount_cents=12345, rate_bp=10_000) == 12345


def test_apply_rate_bp_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        apply_rate_bp(amount_cents=-1, rate_bp=1000)
    with pytest.raises(ValueError):
        apply_rate_bp(amount_cents=100, rate_bp=10_001)
    with pytest.raises(ValueError):
        apply_rate_bp(amount_cents=100, rate_bp=-1)


@pytest.mark.parametrize("paid", [0, 1, 5, 56, 83, 99, 1000, 10_001, 999_999])
def test_split_commission_invariant(paid: int) -> None:
    commission, net = split_commission(paid_cents=paid, commission_rate_bp=1000)
    assert commission + net == paid
    assert commission >= 0
    assert net >= 0


def test_split_commission_zero_rate() -> None:
    assert split_commission(paid_cents=12345, commission_rate_bp=0) == (0, 12345)


def test_percentage() -> None:
    assert percentage(50, 200) == Decimal("25.00")
    assert percentage(1, 3) == Decimal("33.33")
    assert percentage(2, 3) == Decimal("66.67")
    assert percentage(-50, 100) == Decimal("-50.00")
    assert percentage(10, 0) == Decimal("0.00")


def test_format_amount_and_money() -> None:
    assert format_amount(0) == "0.00"
    assert format_amount(1) == "0.01"
    assert format_amount(12345) == "123.45"
    assert format_amount(-1) == "-0.01"

    assert format_money(123456789, "USD") == "$1,234,567.89"
    assert format_money(-150, "usd") == "-$1.50"
    assert format_money(100, "ZWG") == "ZWG 1.00"


def test_parse_amount_to_cents() -> None:
    assert parse_amount_to_cents("") == 0
    assert parse_amount_to_cents("0") == 0
    assert parse_amount_to_cents("0.01") == 1
    assert parse_amount_to_cents("123.45") == 12_345
    assert parse_amount_to_cents("123,4") == 12_340
    assert parse_amount_to_cents("-0.05") == -5
    assert parse_amount_to_cents(" 1 234.56 ") == 123_456

    with pytest.raises(ValueError):
        parse_amount_to_cents("abc")
    with pytest.raises(ValueError):
        parse_amount_to_cents("12.345")
