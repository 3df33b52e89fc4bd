"""Application logic layer."""

from .affordability import (
    affordable_requests,
    low_balance_warning,
    matched_providers,
    suggested_deposit,
    usd_estimate,
)
from .balances import BalanceSnapshot, BalanceTracker, fetch_balances
from .pipeline import (
    PipelineRequest,
    PipelineResult,
    PipelineStageError,
    TransactionPipeline,
    build_plan_params,
    plan_expiration,
)
from .pricing import estimate_tiers
from .wizard import PlanWizard, WizardStateError, WizardValidationError

__all__ = [
    "BalanceSnapshot",
    "BalanceTracker",
    "PipelineRequest",
    "PipelineResult",
    "PipelineStageError",
    "PlanWizard",
    "TransactionPipeline",
    "WizardStateError",
    "WizardValidationError",
    "affordable_requests",
    "build_plan_params",
    "estimate_tiers",
    "fetch_balances",
    "low_balance_warning",
    "matched_providers",
    "plan_expiration",
    "suggested_deposit",
    "usd_estimate",
]
