"""Constants for Flex Plan provisioning.

Centralizes amounts, defaults and fixed names shared by the wizard,
the transaction pipeline and the clients.
"""

from decimal import Decimal

# =============================================================================
# Token Units
# =============================================================================

# Ledger amounts are fixed-point integers with 18 decimals
TOKEN_DECIMALS = 18

# Provider prices are quoted per single request; the UI works per 1000
PRICE_UNIT_REQUESTS = 1000

# =============================================================================
# Billing Account
# =============================================================================

# Minimum deposit accepted by the deposit step (human scale)
MIN_DEPOSIT = Decimal(500)

# Balance under which an active billing account is flagged (human scale)
LOW_BALANCE_FLOOR = Decimal(400)

# Suggested deposit = price per 1000 x multiplier x maximum providers
SUGGESTED_DEPOSIT_MULTIPLIER = 20

# =============================================================================
# Plan Defaults
# =============================================================================

# Expiration used when no provider offer reports a maximum duration (7 days)
DEFAULT_PLAN_EXPIRATION = 3600 * 24 * 7

# Maximum allocated providers per recommended tier
ECONOMY_MAXIMUM = 8
PERFORMANCE_MAXIMUM = 15

# Custom plans: default and lower bound for maximum allocated providers
CUSTOM_MAXIMUM_DEFAULT = 2
MINIMUM_MAXIMUM = 2

# =============================================================================
# Billing Service
# =============================================================================

# API key created for Flex Plan endpoints; shared across every client session
RESERVED_API_KEY_NAME = "flex-plan-endpoint"
