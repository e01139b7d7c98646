from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN


def to_base_units(amount_str: str, decimals: int) -> int:
    """'0.01' with 6 decimals -> 10000. Zero is allowed; negatives are not."""
    try:
        dec = Decimal(str(amount_str).strip())
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"invalid amount: {amount_str}") from exc
    if not dec.is_finite():
        raise ValueError(f"invalid amount: {amount_str}")
    if dec < 0:
        raise ValueError(f"amount must not be negative: {amount_str}")
    if decimals < 0:
        raise ValueError(f"invalid decimals: {decimals}")
    quant = Decimal(10) ** decimals
    return int((dec * quant).to_integral_value(rounding=ROUND_DOWN))
