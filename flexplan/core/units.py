"""Conversions between human-scale token amounts and ledger base units."""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional, Union

from .constants import PRICE_UNIT_REQUESTS, TOKEN_DECIMALS

AmountLike = Union[Decimal, int, float, str]

_SCALE = Decimal(10) ** TOKEN_DECIMALS


def to_decimal(value: Optional[AmountLike]) -> Optional[Decimal]:
    """Parse user/wire input into a Decimal, or None if empty or unparsable."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def to_base_units(amount: AmountLike) -> int:
    """Convert a human-scale amount to an 18-decimal base-unit integer.

    Digits past the 18th decimal are truncated.
    """
    value = to_decimal(amount)
    if value is None:
        raise ValueError(f"Invalid token amount: {amount!r}")
    return int((value * _SCALE).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(raw: Union[int, str]) -> Decimal:
    """Convert an 18-decimal base-unit integer (or its string) to human scale."""
    return Decimal(int(raw)) / _SCALE


def price_per_thousand(raw_price_per_request: Union[int, str]) -> Decimal:
    """Normalize a base-unit per-request price to a human-scale per-1000 price."""
    return from_base_units(raw_price_per_request) * PRICE_UNIT_REQUESTS


def price_per_request(price_per_thousand_value: AmountLike) -> int:
    """Convert a human-scale per-1000 price to a base-unit per-request price."""
    return to_base_units(price_per_thousand_value) // PRICE_UNIT_REQUESTS


def project_id_to_decimal(project_id: str) -> str:
    """Normalize a project id (hex or decimal) to its decimal string form."""
    text = project_id.strip()
    if text.lower().startswith("0x"):
        return str(int(text, 16))
    return str(int(text))
