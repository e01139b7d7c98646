from __future__ import annotations

from decimal import Decimal

import pytest

from pricing.fee_budget import (
    apply_safety_margin,
    compute_funding_token_needed,
    funding_swap_amount,
)


def test_four_and_a_half_usdc_for_a_milli_ether_and_a_half():
    # 0.0015 ETH * $3000 / $1 = 4.5 USDC
    needed = compute_funding_token_needed(
        1_500_000_000_000_000,
        Decimal("3000"),
        Decimal("1"),
        funding_token_decimals=6,
    )
    assert needed == 4_500_000
    assert apply_safety_margin(needed) == 4_725_000


def test_small_shortfall_scales_with_wei():
    # 1.5e12 wei = 0.0000015 ETH -> $0.0045 -> 4500 base units before margin
    amount = funding_swap_amount(
        1_500_000_000_000,
        Decimal("3000"),
        Decimal("1"),
        funding_token_decimals=6,
    )
    assert amount == 4_725


def test_safety_margin_rounds_down():
    assert apply_safety_margin(1) == 1
    assert apply_safety_margin(19) == 19
    assert apply_safety_margin(20) == 21
    assert apply_safety_margin(0) == 0


def test_custom_margin_percent():
    assert apply_safety_margin(1000, margin_percent=10) == 1100


def test_conversion_floors_to_token_units():
    # 1 wei of ETH at $3000 is far below one USDC base unit
    assert compute_funding_token_needed(1, "3000", "1", funding_token_decimals=6) == 0


def test_monotonic_in_shortfall():
    amounts = [
        compute_funding_token_needed(s, "2500.5", "0.999", funding_token_decimals=6)
        for s in (10**14, 10**15, 10**16, 10**17)
    ]
    assert amounts == sorted(amounts)
    assert amounts[0] < amounts[-1]


def test_monotonic_decreasing_in_token_price():
    amounts = [
        compute_funding_token_needed(10**16, "3000", price, funding_token_decimals=6)
        for price in ("0.5", "1", "2", "4")
    ]
    assert amounts == sorted(amounts, reverse=True)
    assert amounts[0] > amounts[-1]


def test_rejects_non_positive_shortfall():
    with pytest.raises(ValueError):
        compute_funding_token_needed(0, "3000", "1", funding_token_decimals=6)
    with pytest.raises(ValueError):
        compute_funding_token_needed(-5, "3000", "1", funding_token_decimals=6)


def test_rejects_zero_token_price():
    with pytest.raises(ValueError):
        compute_funding_token_needed(10**15, "3000", "0", funding_token_decimals=6)


def test_eighteen_decimal_funding_token():
    needed = compute_funding_token_needed(
        10**18, "3000", "1", funding_token_decimals=18
    )
    assert needed == 3000 * 10**18
