"""Domain models."""

from .plan import (
    ApiKey,
    DepositDraft,
    HostingPlan,
    HostingPlanParams,
    PlanDraft,
    PlanTier,
    PricingTiers,
    ProviderOffer,
    WizardState,
    WizardStatus,
    WizardStep,
)
from .results import ServiceError, ServiceResult, Success, is_service_error

__all__ = [
    "ApiKey",
    "DepositDraft",
    "HostingPlan",
    "HostingPlanParams",
    "PlanDraft",
    "PlanTier",
    "PricingTiers",
    "ProviderOffer",
    "ServiceError",
    "ServiceResult",
    "Success",
    "WizardState",
    "WizardStatus",
    "WizardStep",
    "is_service_error",
]
