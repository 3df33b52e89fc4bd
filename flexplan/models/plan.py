"""Flex Plan schema: provider offers, drafts, wizard state and billing records."""

from decimal import Decimal
from enum import IntEnum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PlanTier = Literal["economy", "performance", "custom"]
WizardStatus = Literal["active", "succeeded", "cancelled"]


class WizardStep(IntEnum):
    """Wizard steps in the order they are visited."""

    DRAFT = 0
    DEPOSIT = 1
    CONFIRM = 2


class ProviderOffer(BaseModel):
    """A provider's quote for serving a deployment, sampled once per session."""

    model_config = ConfigDict(frozen=True)

    provider_id: str = Field(description="Provider (indexer) address")
    price_per_thousand: Decimal = Field(
        description="Human-scale token price per 1000 requests"
    )
    max_duration_seconds: int = Field(
        default=0, description="Longest plan duration the provider accepts"
    )


class PricingTiers(BaseModel):
    """Recommended price points per 1000 requests."""

    model_config = ConfigDict(frozen=True)

    economy: Decimal = Decimal(0)
    performance: Decimal = Decimal(0)

    def for_tier(self, tier: PlanTier) -> Optional[Decimal]:
        """Return the recommended price for a tier (None for custom)."""
        if tier == "economy":
            return self.economy
        if tier == "performance":
            return self.performance
        return None


class PlanDraft(BaseModel):
    """Plan parameters edited in the first wizard step."""

    tier: PlanTier = "economy"
    price: Optional[Decimal] = None  # per 1000 requests, human scale
    maximum: Optional[int] = None  # maximum allocated providers


class DepositDraft(BaseModel):
    """Deposit amount edited in the second wizard step."""

    amount: Optional[Decimal] = None  # human scale


class HostingPlanParams(BaseModel):
    """Payload for creating or updating a hosting plan."""

    model_config = ConfigDict(populate_by_name=True)

    deployment_id: str = Field(alias="deploymentId")
    price: str = Field(description="Base-unit price per single request")
    maximum: int
    expiration: int = Field(description="Plan expiration in seconds")
    id: str = "0"


class HostingPlan(BaseModel):
    """A hosting plan as recorded by the billing service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    deployment_id: str = Field(alias="deploymentId")
    price: str = Field(description="Base-unit price per single request")
    maximum: int
    expiration: int

    def matches(self, params: HostingPlanParams) -> bool:
        """Return True if this plan already carries the given parameters."""
        return (
            self.deployment_id == params.deployment_id
            and int(self.price) == int(params.price)
            and self.maximum == params.maximum
            and self.expiration == params.expiration
        )


class ApiKey(BaseModel):
    """An API key issued by the billing service. Only its presence matters here."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: str
    value: Optional[str] = None


class WizardState(BaseModel):
    """State owned by a single wizard session."""

    current_step: WizardStep = WizardStep.DRAFT
    plan_draft: PlanDraft = Field(default_factory=PlanDraft)
    deposit_draft: DepositDraft = Field(default_factory=DepositDraft)
    existing_plan: Optional[HostingPlan] = None
    existing_api_key: Optional[ApiKey] = None
    billing_balance: Decimal = Decimal(0)  # human scale
    allowance: Decimal = Decimal(0)  # human scale
    status: WizardStatus = "active"
