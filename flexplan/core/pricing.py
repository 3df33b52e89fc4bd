"""Pricing tier estimation from a live sample of provider offers."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Sequence

from flexplan.models import PricingTiers, ProviderOffer

# Samples this small are not segmented: both tiers use the top price
THIN_MARKET_SIZE = 3
# Samples up to this size use the 3rd-cheapest offer for economy
SMALL_MARKET_SIZE = 5

ECONOMY_PERCENTILE = Decimal("0.4")
PERFORMANCE_PERCENTILE = Decimal("0.8")
ECONOMY_MIN_INDEX = 2
PERFORMANCE_MIN_INDEX = 4


def sorted_prices(offers: Sequence[ProviderOffer]) -> list[Decimal]:
    """Return per-1000 prices in ascending order (stable for equal prices)."""
    return sorted(offer.price_per_thousand for offer in offers)


def tier_indices(count: int) -> tuple[int, int]:
    """Return (economy_index, performance_index) into a sorted sample of `count`.

    Only meaningful for samples larger than SMALL_MARKET_SIZE.
    """
    economy_index = max(ECONOMY_MIN_INDEX, math.ceil(count * ECONOMY_PERCENTILE))
    performance_index = max(
        PERFORMANCE_MIN_INDEX, math.ceil(count * PERFORMANCE_PERCENTILE)
    )
    return economy_index, performance_index


def estimate_tiers(offers: Sequence[ProviderOffer]) -> PricingTiers:
    """Derive economy and performance price points from provider offers.

    Algorithm (prices normalized per 1000 requests, sorted ascending):
    - No offers: both tiers are 0
    - Up to 3 offers: both tiers are the highest price
    - 4 or 5 offers: economy is the 3rd-cheapest, performance the highest
    - More offers: economy at index max(2, ceil(0.4n)), performance at
      index max(4, ceil(0.8n)), both 0-based

    Never raises; performance >= economy always holds.
    """
    prices = sorted_prices(offers)
    count = len(prices)

    if count == 0:
        return PricingTiers(economy=Decimal(0), performance=Decimal(0))

    highest = prices[-1]
    if count <= THIN_MARKET_SIZE:
        return PricingTiers(economy=highest, performance=highest)

    if count <= SMALL_MARKET_SIZE:
        return PricingTiers(economy=prices[2], performance=highest)

    economy_index, performance_index = tier_indices(count)
    return PricingTiers(
        economy=prices[min(economy_index, count - 1)],
        performance=prices[min(performance_index, count - 1)],
    )
