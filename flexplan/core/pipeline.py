"""Transaction pipeline: allowance -> deposit -> API key -> hosting plan.

Each stage first re-reads live ledger/service state and only acts when the
stage is still needed, so re-running the pipeline after a failure (or from
another session) converges without double-spending or duplicate resources.
Confirmed ledger transactions are never rolled back.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Awaitable, Callable, Literal, Optional, Sequence

from flexplan.clients.billing import BillingServiceClient
from flexplan.clients.ledger import LedgerClient, LedgerError
from flexplan.models import (
    ApiKey,
    HostingPlan,
    HostingPlanParams,
    ProviderOffer,
    is_service_error,
)

from .constants import DEFAULT_PLAN_EXPIRATION, RESERVED_API_KEY_NAME
from .units import price_per_request, to_base_units

logger = logging.getLogger(__name__)

StageName = Literal["allowance", "deposit", "api_key", "plan"]
StageStatus = Literal["pending", "running", "done", "skipped", "failed"]

STAGES: tuple[StageName, ...] = ("allowance", "deposit", "api_key", "plan")

STAGE_LABELS: dict[StageName, str] = {
    "allowance": "Authorise billing permissions",
    "deposit": "Deposit funds to billing account",
    "api_key": "Create personal API key",
    "plan": "Create Flex Plan",
}

ProgressCallback = Callable[[StageName, StageStatus], None]


class PipelineStageError(Exception):
    """A pipeline stage failed; later stages were not executed."""

    def __init__(self, stage: StageName, message: str) -> None:
        super().__init__(message)
        self.stage = stage
        self.message = message

    def __str__(self) -> str:
        return self.message


@dataclass
class PipelineRequest:
    """Inputs of one provisioning run.

    Updated in place as stages complete (deposit cleared, key and plan
    recorded) so a retry resumes from the first unfinished stage.
    """

    deployment_id: str
    price: Decimal  # per 1000 requests, human scale
    maximum: Decimal | int
    deposit: Optional[Decimal] = None  # human scale
    offers: Sequence[ProviderOffer] = ()
    existing_plan: Optional[HostingPlan] = None
    existing_api_key: Optional[ApiKey] = None
    billing_balance: Optional[int] = None  # base units, refreshed after deposit


@dataclass
class PipelineResult:
    """Outcome of a successful run."""

    stages: dict[StageName, StageStatus]
    plan: HostingPlan
    api_key: Optional[ApiKey]
    billing_balance: Optional[int] = None

    @property
    def mutations(self) -> int:
        """Number of stages that changed ledger or service state."""
        return sum(1 for status in self.stages.values() if status == "done")


def plan_expiration(offers: Sequence[ProviderOffer]) -> int:
    """Longest duration any sampled provider accepts, or the 7-day default."""
    longest = max((offer.max_duration_seconds for offer in offers), default=0)
    return longest or DEFAULT_PLAN_EXPIRATION


def build_plan_params(request: PipelineRequest) -> HostingPlanParams:
    """Build the create/update payload for a request."""
    return HostingPlanParams(
        deployment_id=request.deployment_id,
        price=str(price_per_request(request.price)),
        maximum=math.ceil(request.maximum),
        expiration=plan_expiration(request.offers),
        id=request.existing_plan.id if request.existing_plan else "0",
    )


@dataclass
class TransactionPipeline:
    """Runs the provisioning stages in order against injected clients."""

    ledger: LedgerClient
    billing: BillingServiceClient
    api_key_name: str = RESERVED_API_KEY_NAME
    on_progress: Optional[ProgressCallback] = None
    _statuses: dict[StageName, StageStatus] = field(default_factory=dict, init=False)

    def _notify(self, stage: StageName, status: StageStatus) -> None:
        self._statuses[stage] = status
        if self.on_progress is not None:
            self.on_progress(stage, status)

    async def _stage(self, stage: StageName, step: Callable[[], Awaitable[bool]]) -> None:
        """Run one stage; `step` returns True if it changed state."""
        self._notify(stage, "running")
        try:
            acted = await step()
        except LedgerError as e:
            logger.error("Stage %s failed: %s", stage, e)
            self._notify(stage, "failed")
            raise PipelineStageError(stage, str(e)) from e
        except PipelineStageError as e:
            logger.error("Stage %s failed: %s", stage, e)
            self._notify(stage, "failed")
            raise
        except Exception:
            self._notify(stage, "failed")
            raise
        self._notify(stage, "done" if acted else "skipped")
        logger.info("Stage %s %s", stage, "done" if acted else "skipped")

    async def run(self, request: PipelineRequest) -> PipelineResult:
        """Execute all stages; the first failing stage aborts the run.

        Raises:
            PipelineStageError: A ledger failure or service-level error.
            Exception: Unexpected errors propagate unchanged.
        """
        self._statuses = {stage: "pending" for stage in STAGES}
        logger.info("Provisioning Flex Plan for %s", request.deployment_id)

        await self._stage("allowance", lambda: self._ensure_allowance(request))
        await self._stage("deposit", lambda: self._deposit(request))
        await self._stage("api_key", lambda: self._ensure_api_key(request))
        await self._stage("plan", lambda: self._submit_plan(request))

        plan = request.existing_plan
        if plan is None:
            self._notify("plan", "failed")
            raise PipelineStageError("plan", "Billing service returned no hosting plan")
        return PipelineResult(
            stages=dict(self._statuses),
            plan=plan,
            api_key=request.existing_api_key,
            billing_balance=request.billing_balance,
        )

    async def _ensure_allowance(self, request: PipelineRequest) -> bool:
        amount = to_base_units(request.deposit or 0)
        spender = self.ledger.billing_address
        current = await self.ledger.allowance(spender)
        if current >= amount:
            return False
        tx = await self.ledger.approve(spender, amount)
        await tx.wait()
        return True

    async def _deposit(self, request: PipelineRequest) -> bool:
        if not request.deposit or request.deposit <= 0:
            return False
        tx = await self.ledger.deposit(to_base_units(request.deposit), True)
        await tx.wait()
        request.deposit = None
        request.billing_balance = await self.ledger.billing_balance(self.ledger.account)
        return True

    async def _ensure_api_key(self, request: PipelineRequest) -> bool:
        if request.existing_api_key is not None:
            return False

        # Another session of the same account may have created the key already
        keys = await self.billing.list_api_keys()
        if is_service_error(keys):
            raise PipelineStageError("api_key", keys.error)
        for key in keys.value:
            if key.name == self.api_key_name:
                request.existing_api_key = key
                return False

        created = await self.billing.create_api_key(self.api_key_name)
        if is_service_error(created):
            raise PipelineStageError("api_key", created.error)
        request.existing_api_key = created.value
        return True

    async def _submit_plan(self, request: PipelineRequest) -> bool:
        params = build_plan_params(request)
        existing = request.existing_plan
        if existing is not None and existing.matches(params):
            return False

        if existing is not None:
            result = await self.billing.update_hosting_plan(existing.id, params)
        else:
            result = await self.billing.create_hosting_plan(params)
        if is_service_error(result):
            raise PipelineStageError("plan", result.error)
        request.existing_plan = result.value
        return True
