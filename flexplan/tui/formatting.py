"""Display helpers for amounts and errors."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from flexplan.clients.ledger import LedgerError
from flexplan.core.pipeline import STAGE_LABELS, PipelineStageError


def format_amount(value: Optional[Decimal], symbol: str, places: int = 2) -> str:
    """Format a human-scale token amount, e.g. `1,250.00 SQT`."""
    amount = value or Decimal(0)
    quantum = Decimal(1).scaleb(-places)
    return f"{amount.quantize(quantum, rounding=ROUND_HALF_UP):,} {symbol}"


def format_usd(value: Optional[Decimal]) -> str:
    """Format an optional USD estimate, e.g. `(~US$0.1250)`; empty without a price."""
    if value is None:
        return ""
    return f"(~US${value})"


def format_error(error: Exception) -> str:
    """Format a pipeline error for display with actionable guidance."""
    if isinstance(error, PipelineStageError):
        label = STAGE_LABELS.get(error.stage, error.stage)
        message = error.message
        lowered = message.lower()
        if "denied" in lowered or "rejected" in lowered:
            return f"{label}: transaction was rejected in your wallet."
        if "insufficient" in lowered:
            return f"{label}: insufficient funds. Check your wallet balance and try again."
        return f"{label} failed: {message}"

    if isinstance(error, LedgerError):
        return f"Ledger error: {error}"

    error_type = type(error).__name__
    error_msg = str(error)
    if "timeout" in error_msg.lower() or "Timeout" in error_type:
        return (
            "Connection timed out. Possible causes:\n"
            "  • Billing service or RPC node is slow\n"
            "  • Network issues\n"
            "  • Try again in a moment"
        )
    if "connect" in error_msg.lower() or "Connect" in error_type:
        return (
            "Could not connect. Please check:\n"
            "  • Billing service and RPC URLs are correct\n"
            "  • Network/firewall allows the connection"
        )
    return f"{error_type}: {error_msg[:100]}"
