"""Shared copy and constants for wizard screens."""

from dataclasses import dataclass

from flexplan.models import PlanTier


@dataclass(frozen=True)
class TierMeta:
    """Display metadata for a pricing tier."""

    id: PlanTier
    display_name: str
    description: str


TIERS: list[TierMeta] = [
    TierMeta(
        "economy",
        "Economy",
        "A lower cost limit: fewer providers serve your data, which may lower "
        "reliability and global performance. Best when cost matters most.",
    ),
    TierMeta(
        "performance",
        "Performance",
        "A higher cost limit: more providers serve your data, generally raising "
        "reliability and global performance. Best for production use cases.",
    ),
    TierMeta(
        "custom",
        "Custom price (advanced users only)",
        "Enter a maximum price per 1000 requests and an optional limit of "
        "allocated providers.",
    ),
]

TIER_MAP: dict[str, TierMeta] = {t.id: t for t in TIERS}

STEP_TITLES = ("Create Flex Plan", "Deposit to Billing Account", "Confirm")

DEPOSIT_INTRO = (
    "Every wallet has a Billing Account holding tokens you authorise the billing "
    "service to deduct for Flex Plan payments. If it runs out, your Flex Plan is "
    "cancelled and your endpoint may stop working. Unused funds can be withdrawn "
    "at any time without an unlocking period."
)

CONFIRM_INTRO = (
    "Approve the following transactions with your wallet to start this Flex Plan. "
    "Completed steps are skipped when you retry."
)

STAGE_ICONS = {
    "pending": "○",
    "running": "…",
    "done": "✓",
    "skipped": "✓",
    "failed": "✗",
}
