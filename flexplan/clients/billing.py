"""Abstract base class for billing service clients."""

from abc import ABC, abstractmethod

from flexplan.models import (
    ApiKey,
    HostingPlan,
    HostingPlanParams,
    ProviderOffer,
    ServiceResult,
)


class BillingServiceClient(ABC):
    """Interface to the off-chain billing service.

    Service-level failures are returned as `ServiceError` values, never raised.
    Transport failures (connection refused, timeouts) surface as exceptions.
    """

    @abstractmethod
    async def list_indexer_offers(
        self, project_id: str, deployment_id: str
    ) -> list[ProviderOffer]:
        """Return the current provider offers for a deployment.

        Returns an empty list when offers cannot be fetched.
        """
        ...

    @abstractmethod
    async def list_api_keys(self) -> ServiceResult[list[ApiKey]]:
        """Return the account's API keys."""
        ...

    @abstractmethod
    async def create_api_key(self, name: str) -> ServiceResult[ApiKey]:
        """Create an API key with the given name."""
        ...

    @abstractmethod
    async def list_hosting_plans(self) -> ServiceResult[list[HostingPlan]]:
        """Return the account's hosting plans."""
        ...

    @abstractmethod
    async def create_hosting_plan(
        self, params: HostingPlanParams
    ) -> ServiceResult[HostingPlan]:
        """Create a hosting plan."""
        ...

    @abstractmethod
    async def update_hosting_plan(
        self, plan_id: str, params: HostingPlanParams
    ) -> ServiceResult[HostingPlan]:
        """Update an existing hosting plan."""
        ...

    async def close(self) -> None:
        """Release transport resources. No-op by default."""
        return
