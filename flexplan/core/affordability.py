"""Affordability figures derived from balances and draft plan parameters.

All functions are pure and cheap; callers recompute them whenever an input
changes instead of caching results.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from flexplan.models import ProviderOffer

from .constants import (
    CUSTOM_MAXIMUM_DEFAULT,
    LOW_BALANCE_FLOOR,
    PRICE_UNIT_REQUESTS,
    SUGGESTED_DEPOSIT_MULTIPLIER,
)


def matched_providers(
    price_threshold: Optional[Decimal], offers: Sequence[ProviderOffer]
) -> int:
    """Count offers priced at or below the threshold (per 1000 requests)."""
    if not price_threshold or not offers:
        return 0
    return sum(1 for offer in offers if offer.price_per_thousand <= price_threshold)


def affordable_requests(
    balance: Optional[Decimal], price: Optional[Decimal]
) -> int:
    """Number of requests a balance pays for at a per-1000 price."""
    if not balance or not price:
        return 0
    return math.floor(balance / price * PRICE_UNIT_REQUESTS)


def low_balance_warning(
    existing_balance: Optional[Decimal], floor_threshold: Decimal = LOW_BALANCE_FLOOR
) -> bool:
    """True for a funded billing account that is about to run out.

    Accounts that were never funded (zero balance) are not flagged.
    """
    if not existing_balance:
        return False
    return Decimal(0) < existing_balance < floor_threshold


def suggested_deposit(price: Optional[Decimal], maximum: Optional[int]) -> Decimal:
    """Suggested billing balance for a plan: price x 20 x maximum providers."""
    if not price:
        return Decimal(0)
    return price * SUGGESTED_DEPOSIT_MULTIPLIER * (maximum or CUSTOM_MAXIMUM_DEFAULT)


def usd_estimate(
    amount: Optional[Decimal], token_usd_price: Optional[Decimal]
) -> Optional[Decimal]:
    """Approximate USD value of a token amount, or None without a price feed."""
    if amount is None or not token_usd_price:
        return None
    return (amount * token_usd_price).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
