from __future__ import annotations

from decimal import Decimal, ROUND_DOWN, localcontext

NATIVE_DECIMALS = 18
DEFAULT_SAFETY_MARGIN_PERCENT = 5


def _to_decimal(value: Decimal | str | int | float, name: str) -> Decimal:
    dec = Decimal(str(value))
    if not dec.is_finite():
        raise ValueError(f"{name} must be finite: {value}")
    return dec


def compute_funding_token_needed(
    native_shortfall: int,
    native_usd_price: Decimal | str,
    funding_token_usd_price: Decimal | str,
    *,
    funding_token_decimals: int,
    native_decimals: int = NATIVE_DECIMALS,
) -> int:
    """
    Funding-token base units worth `native_shortfall` wei at the given USD prices.

    (shortfall * native_price) / token_price, computed in Decimal, then
    scaled to the funding token's decimals and rounded down.
    """
    if native_shortfall <= 0:
        raise ValueError("native_shortfall must be positive")

    native_price = _to_decimal(native_usd_price, "native_usd_price")
    token_price = _to_decimal(funding_token_usd_price, "funding_token_usd_price")
    if native_price < 0:
        raise ValueError("native_usd_price must not be negative")
    if token_price <= 0:
        raise ValueError("funding_token_usd_price must be positive")

    with localcontext() as ctx:
        ctx.prec = 78
        native_amount = Decimal(native_shortfall) / (Decimal(10) ** native_decimals)
        fee_usd = native_amount * native_price
        tokens_needed = fee_usd / token_price
        base_units = tokens_needed * (Decimal(10) ** funding_token_decimals)
        return int(base_units.to_integral_value(rounding=ROUND_DOWN))


def apply_safety_margin(amount: int, margin_percent: int = DEFAULT_SAFETY_MARGIN_PERCENT) -> int:
    # absorbs price staleness and swap slippage
    if amount < 0:
        raise ValueError("amount must not be negative")
    return amount * (100 + margin_percent) // 100


def funding_swap_amount(
    native_shortfall: int,
    native_usd_price: Decimal | str,
    funding_token_usd_price: Decimal | str,
    *,
    funding_token_decimals: int,
    margin_percent: int = DEFAULT_SAFETY_MARGIN_PERCENT,
) -> int:
    needed = compute_funding_token_needed(
        native_shortfall,
        native_usd_price,
        funding_token_usd_price,
        funding_token_decimals=funding_token_decimals,
    )
    return apply_safety_margin(needed, margin_percent)
