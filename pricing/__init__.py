"""Price lookups and fee budgeting for the funding token."""
from .coinmarketcap import PriceResolver
from .fee_budget import (
    apply_safety_margin,
    compute_funding_token_needed,
    funding_swap_amount,
)

__all__ = [
    "PriceResolver",
    "apply_safety_margin",
    "compute_funding_token_needed",
    "funding_swap_amount",
]
