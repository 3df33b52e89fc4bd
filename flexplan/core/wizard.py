"""Plan wizard state machine: Draft -> Deposit -> Confirm -> terminal.

The wizard owns the session's WizardState. Every transition is triggered by
the user; derived figures (tiers, matched providers, affordability) are
recomputed from the current inputs on every access.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional, Sequence

from flexplan.models import (
    ApiKey,
    HostingPlan,
    PlanTier,
    PricingTiers,
    ProviderOffer,
    WizardState,
    WizardStep,
)

from .affordability import (
    affordable_requests,
    low_balance_warning,
    matched_providers,
    suggested_deposit,
)
from .constants import (
    CUSTOM_MAXIMUM_DEFAULT,
    ECONOMY_MAXIMUM,
    MIN_DEPOSIT,
    MINIMUM_MAXIMUM,
    PERFORMANCE_MAXIMUM,
)
from .pipeline import (
    STAGE_LABELS,
    PipelineRequest,
    PipelineResult,
    StageName,
    TransactionPipeline,
)
from .pricing import estimate_tiers
from .units import AmountLike, from_base_units, price_per_thousand, to_decimal

logger = logging.getLogger(__name__)

TIER_MAXIMUM: dict[PlanTier, int] = {
    "economy": ECONOMY_MAXIMUM,
    "performance": PERFORMANCE_MAXIMUM,
}


class WizardValidationError(ValueError):
    """A form field blocks the requested transition."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class WizardStateError(RuntimeError):
    """An action is not available in the wizard's current state."""


@dataclass(frozen=True)
class ChecklistItem:
    """One confirm-step item and whether it is already satisfied."""

    stage: StageName
    label: str
    satisfied: bool


class PlanWizard:
    """Three-step Flex Plan wizard for one deployment.

    Args:
        deployment_id: Deployment the plan is created for.
        offers: Provider offers sampled for this session.
        existing_plan: Plan being edited; switches the draft to custom
            pricing pre-filled from the plan.
        existing_api_key: Key already issued for the account; the API-key
            stage is then pre-satisfied.
        billing_balance: Current billing account balance (human scale).
        allowance: Current allowance granted to the billing contract.
        on_cancel: Called when the user goes back from the first step.
        on_success: Called with the pipeline result after confirmation.
    """

    def __init__(
        self,
        deployment_id: str,
        offers: Sequence[ProviderOffer] = (),
        existing_plan: Optional[HostingPlan] = None,
        existing_api_key: Optional[ApiKey] = None,
        billing_balance: Decimal = Decimal(0),
        allowance: Decimal = Decimal(0),
        on_cancel: Optional[Callable[[], None]] = None,
        on_success: Optional[Callable[[PipelineResult], None]] = None,
    ) -> None:
        self.deployment_id = deployment_id
        self.offers: tuple[ProviderOffer, ...] = tuple(offers)
        self._on_cancel = on_cancel
        self._on_success = on_success
        self.state = WizardState(
            existing_plan=existing_plan,
            existing_api_key=existing_api_key,
            billing_balance=billing_balance,
            allowance=allowance,
        )
        if existing_plan is not None:
            draft = self.state.plan_draft
            draft.tier = "custom"
            draft.price = price_per_thousand(existing_plan.price)
            draft.maximum = existing_plan.maximum

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def step(self) -> WizardStep:
        """Return the current step."""
        return self.state.current_step

    @property
    def tiers(self) -> PricingTiers:
        """Recommended tiers for the sampled offers."""
        return estimate_tiers(self.offers)

    @property
    def is_edit(self) -> bool:
        """True when updating an existing plan rather than creating one."""
        return self.state.existing_plan is not None

    @property
    def can_skip_deposit(self) -> bool:
        """Skipping the deposit is offered only with a funded billing account."""
        return self.step == WizardStep.DEPOSIT and self.state.billing_balance > 0

    @property
    def needs_allowance(self) -> bool:
        """True if the current allowance does not cover the deposit."""
        amount = self.state.deposit_draft.amount or Decimal(0)
        return self.state.allowance < amount

    def matched_providers(self) -> int:
        """Providers whose price is within the draft price."""
        return matched_providers(self.state.plan_draft.price, self.offers)

    def affordable_requests(self) -> int:
        """Requests the current billing balance pays for at the draft price."""
        return affordable_requests(self.state.billing_balance, self.state.plan_draft.price)

    def suggested_deposit(self) -> Decimal:
        """Suggested billing balance for the draft plan."""
        draft = self.state.plan_draft
        return suggested_deposit(draft.price, draft.maximum)

    def low_balance(self) -> bool:
        """True if the funded billing account is running low."""
        return low_balance_warning(self.state.billing_balance)

    def checklist(self) -> list[ChecklistItem]:
        """Confirm-step items with their pre-satisfied flags."""
        return [
            ChecklistItem("allowance", STAGE_LABELS["allowance"], not self.needs_allowance),
            ChecklistItem(
                "deposit", STAGE_LABELS["deposit"], not self.state.deposit_draft.amount
            ),
            ChecklistItem(
                "api_key",
                STAGE_LABELS["api_key"],
                self.state.existing_api_key is not None,
            ),
        ]

    # =========================================================================
    # Form edits
    # =========================================================================

    def _require_active(self) -> None:
        if self.state.status != "active":
            raise WizardStateError(f"Wizard is {self.state.status}")

    def select_tier(self, tier: PlanTier) -> None:
        """Select a pricing tier; entering custom clears the custom fields."""
        self._require_active()
        draft = self.state.plan_draft
        if tier == "custom" and draft.tier != "custom":
            draft.price = None
            draft.maximum = None
        draft.tier = tier

    def set_price(self, value: Optional[AmountLike]) -> None:
        """Set the custom price per 1000 requests."""
        self.state.plan_draft.price = to_decimal(value)

    def set_maximum(self, value: Optional[AmountLike]) -> None:
        """Set the custom maximum of allocated providers."""
        parsed = to_decimal(value)
        self.state.plan_draft.maximum = math.ceil(parsed) if parsed is not None else None

    def set_deposit(self, value: Optional[AmountLike]) -> None:
        """Set the deposit amount."""
        self.state.deposit_draft.amount = to_decimal(value)

    def update_balances(
        self, billing_balance: Optional[Decimal] = None, allowance: Optional[Decimal] = None
    ) -> None:
        """Record freshly fetched balances."""
        if billing_balance is not None:
            self.state.billing_balance = billing_balance
        if allowance is not None:
            self.state.allowance = allowance

    # =========================================================================
    # Transitions
    # =========================================================================

    def next_step(self) -> WizardStep:
        """Validate the current step and advance.

        Raises:
            WizardValidationError: A field blocks the transition.
            WizardStateError: Called at the confirm step or after completion.
        """
        self._require_active()
        if self.step == WizardStep.DRAFT:
            self._apply_draft()
            self.state.current_step = WizardStep.DEPOSIT
        elif self.step == WizardStep.DEPOSIT:
            self._validate_deposit()
            self.state.current_step = WizardStep.CONFIRM
        else:
            raise WizardStateError("Use confirm() to finish the wizard")
        logger.debug("Wizard advanced to %s", self.step.name)
        return self.step

    def skip_deposit(self) -> WizardStep:
        """Move to confirm without depositing (funded billing accounts only)."""
        self._require_active()
        if not self.can_skip_deposit:
            raise WizardStateError("Deposit can only be skipped with a funded billing account")
        self.state.deposit_draft.amount = None
        self.state.current_step = WizardStep.CONFIRM
        return self.step

    def previous_step(self) -> Optional[WizardStep]:
        """Go back one step; from the first step, cancel the wizard."""
        self._require_active()
        if self.step == WizardStep.DRAFT:
            self.state.status = "cancelled"
            if self._on_cancel is not None:
                self._on_cancel()
            return None
        self.state.current_step = WizardStep(self.step - 1)
        return self.step

    def _apply_draft(self) -> None:
        draft = self.state.plan_draft
        if draft.tier == "custom":
            if draft.price is None:
                raise WizardValidationError("price", "Please enter a price")
            if draft.price <= 0:
                raise WizardValidationError("price", "Price must be greater than 0")
            if draft.maximum is not None and draft.maximum < MINIMUM_MAXIMUM:
                raise WizardValidationError(
                    "maximum",
                    f"Maximum allocated providers must be at least {MINIMUM_MAXIMUM}",
                )
            draft.maximum = draft.maximum or CUSTOM_MAXIMUM_DEFAULT
            return

        price = self.tiers.for_tier(draft.tier) or Decimal(0)
        if price <= 0:
            raise WizardValidationError(
                "price",
                "No provider offers available for this deployment; enter a custom price",
            )
        draft.price = price
        draft.maximum = TIER_MAXIMUM[draft.tier]

    def _validate_deposit(self) -> None:
        amount = self.state.deposit_draft.amount
        if amount is None:
            raise WizardValidationError("amount", "Please enter a deposit amount")
        if amount < MIN_DEPOSIT:
            raise WizardValidationError(
                "amount", f"Minimum deposit amount is {MIN_DEPOSIT}"
            )

    # =========================================================================
    # Confirmation
    # =========================================================================

    def build_request(self) -> PipelineRequest:
        """Snapshot the drafts into a pipeline request."""
        draft = self.state.plan_draft
        if draft.price is None or draft.maximum is None:
            raise WizardStateError("Plan draft is incomplete")
        return PipelineRequest(
            deployment_id=self.deployment_id,
            price=draft.price,
            maximum=draft.maximum,
            deposit=self.state.deposit_draft.amount,
            offers=self.offers,
            existing_plan=self.state.existing_plan,
            existing_api_key=self.state.existing_api_key,
        )

    def _absorb(self, request: PipelineRequest) -> None:
        """Copy stage outcomes back so a retry skips completed stages."""
        self.state.deposit_draft.amount = request.deposit
        self.state.existing_api_key = request.existing_api_key
        self.state.existing_plan = request.existing_plan
        if request.billing_balance is not None:
            self.state.billing_balance = from_base_units(request.billing_balance)

    async def confirm(self, pipeline: TransactionPipeline) -> PipelineResult:
        """Run the pipeline; on success the wizard reaches its terminal state.

        Errors propagate unchanged; the wizard stays on the confirm step so
        the user can retry.
        """
        self._require_active()
        if self.step != WizardStep.CONFIRM:
            raise WizardStateError("Confirmation is only available on the last step")

        request = self.build_request()
        try:
            result = await pipeline.run(request)
        finally:
            self._absorb(request)

        self.state.status = "succeeded"
        if self._on_success is not None:
            self._on_success(result)
        return result
