"""Global fixtures: in-memory ledger and billing service fakes."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import pytest

from flexplan.clients.billing import BillingServiceClient
from flexplan.clients.ledger import LedgerClient, LedgerError, TxHandle
from flexplan.core.units import to_base_units
from flexplan.models import (
    ApiKey,
    HostingPlan,
    HostingPlanParams,
    ProviderOffer,
    ServiceError,
    ServiceResult,
    Success,
)

ACCOUNT = "0x" + "11" * 20
BILLING_ADDRESS = "0x" + "22" * 20


class FakeTx(TxHandle):
    """Transaction that confirms immediately (or fails on wait)."""

    def __init__(self, tx_hash: str, error: Optional[str] = None) -> None:
        self._tx_hash = tx_hash
        self._error = error
        self.waited = False

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    async def wait(self) -> dict[str, Any]:
        self.waited = True
        if self._error:
            raise LedgerError(self._error)
        return {"transactionHash": self._tx_hash, "status": 1}


class FakeLedger(LedgerClient):
    """Ledger holding balances in memory; records every call."""

    def __init__(
        self,
        wallet: Decimal = Decimal(10_000),
        billing: Decimal = Decimal(0),
        allowance: Decimal = Decimal(0),
    ) -> None:
        self.wallet_units = to_base_units(wallet)
        self.billing_units = to_base_units(billing)
        self.allowance_units = to_base_units(allowance)
        self.calls: list[tuple[Any, ...]] = []
        self.fail_approve: Optional[str] = None
        self.fail_deposit: Optional[str] = None
        self.revert_deposit: Optional[str] = None
        self._account = ACCOUNT

    @property
    def account(self) -> str:
        return self._account

    @property
    def billing_address(self) -> str:
        return BILLING_ADDRESS

    def switch(self, account: str) -> None:
        self._account = account

    async def allowance(self, spender: str, owner: Optional[str] = None) -> int:
        self.calls.append(("allowance", spender, owner or self._account))
        return self.allowance_units

    async def approve(self, spender: str, amount: int) -> TxHandle:
        self.calls.append(("approve", spender, amount))
        if self.fail_approve:
            raise LedgerError(self.fail_approve)
        self.allowance_units = amount
        return FakeTx(f"0xapprove{len(self.calls)}")

    async def deposit(self, amount: int, flag: bool) -> TxHandle:
        self.calls.append(("deposit", amount, flag))
        if self.fail_deposit:
            raise LedgerError(self.fail_deposit)
        if self.revert_deposit:
            return FakeTx("0xdeposit", error=self.revert_deposit)
        self.allowance_units -= amount
        self.wallet_units -= amount
        self.billing_units += amount
        return FakeTx(f"0xdeposit{len(self.calls)}")

    async def balance_of(self, address: str) -> int:
        self.calls.append(("balance_of", address))
        return self.wallet_units

    async def billing_balance(self, address: str) -> int:
        self.calls.append(("billing_balance", address))
        return self.billing_units

    def mutations(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] in ("approve", "deposit")]


class FakeBilling(BillingServiceClient):
    """Billing service keeping API keys and plans in memory."""

    def __init__(self, offers: Optional[list[ProviderOffer]] = None) -> None:
        self.offers = offers or []
        self.api_keys: list[ApiKey] = []
        self.plans: list[HostingPlan] = []
        self.calls: list[tuple[Any, ...]] = []
        self.list_keys_error: Optional[str] = None
        self.create_key_error: Optional[str] = None
        self.plan_error: Optional[str] = None
        self.closed = False

    async def list_indexer_offers(
        self, project_id: str, deployment_id: str
    ) -> list[ProviderOffer]:
        self.calls.append(("list_indexer_offers", project_id, deployment_id))
        return list(self.offers)

    async def list_api_keys(self) -> ServiceResult[list[ApiKey]]:
        self.calls.append(("list_api_keys",))
        if self.list_keys_error:
            return ServiceError(error=self.list_keys_error)
        return Success(list(self.api_keys))

    async def create_api_key(self, name: str) -> ServiceResult[ApiKey]:
        self.calls.append(("create_api_key", name))
        if self.create_key_error:
            return ServiceError(error=self.create_key_error)
        key = ApiKey(id=str(len(self.api_keys) + 1), name=name, value="secret")
        self.api_keys.append(key)
        return Success(key)

    async def list_hosting_plans(self) -> ServiceResult[list[HostingPlan]]:
        self.calls.append(("list_hosting_plans",))
        return Success(list(self.plans))

    async def create_hosting_plan(
        self, params: HostingPlanParams
    ) -> ServiceResult[HostingPlan]:
        self.calls.append(("create_hosting_plan", params))
        if self.plan_error:
            return ServiceError(error=self.plan_error)
        plan = HostingPlan(
            id=str(len(self.plans) + 1),
            deployment_id=params.deployment_id,
            price=params.price,
            maximum=params.maximum,
            expiration=params.expiration,
        )
        self.plans.append(plan)
        return Success(plan)

    async def update_hosting_plan(
        self, plan_id: str, params: HostingPlanParams
    ) -> ServiceResult[HostingPlan]:
        self.calls.append(("update_hosting_plan", plan_id, params))
        if self.plan_error:
            return ServiceError(error=self.plan_error)
        plan = HostingPlan(
            id=plan_id,
            deployment_id=params.deployment_id,
            price=params.price,
            maximum=params.maximum,
            expiration=params.expiration,
        )
        self.plans = [p for p in self.plans if p.id != plan_id] + [plan]
        return Success(plan)

    async def close(self) -> None:
        self.closed = True

    def mutations(self) -> list[tuple[Any, ...]]:
        return [
            call
            for call in self.calls
            if call[0] in ("create_api_key", "create_hosting_plan", "update_hosting_plan")
        ]


def _make_offers(*prices: int | str | Decimal, max_time: int = 0) -> list[ProviderOffer]:
    """Offers with the given per-1000 prices."""
    return [
        ProviderOffer(
            provider_id=f"0xprovider{i}",
            price_per_thousand=Decimal(str(price)),
            max_duration_seconds=max_time,
        )
        for i, price in enumerate(prices)
    ]


@pytest.fixture
def offers_factory():
    """Build offers from per-1000 prices: `offers_factory(10, 20, max_time=60)`."""
    return _make_offers


@pytest.fixture
def ledger() -> FakeLedger:
    """Funded wallet with an empty billing account."""
    return FakeLedger()


@pytest.fixture
def billing() -> FakeBilling:
    """Billing service with no keys or plans."""
    return FakeBilling()
