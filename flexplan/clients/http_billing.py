"""Billing service client using httpx for API calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

import httpx
from pydantic import ValidationError

from flexplan.core.units import price_per_thousand, project_id_to_decimal
from flexplan.models import (
    ApiKey,
    HostingPlan,
    HostingPlanParams,
    ProviderOffer,
    ServiceError,
    ServiceResult,
    Success,
    is_service_error,
)

from .billing import BillingServiceClient
from .constants import (
    API_KEY_CREATE_PATH,
    API_KEYS_PATH,
    DEFAULT_HTTP_TIMEOUT,
    HOSTING_PLAN_PATH,
    HOSTING_PLANS_PATH,
    HTTP_KEEPALIVE_TIMEOUT,
    HTTP_MAX_CONNECTIONS,
    PROJECT_OFFERS_PATH,
)

if TYPE_CHECKING:
    from flexplan.config import Settings

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def _offer_from_payload(payload: dict[str, Any]) -> ProviderOffer:
    """Build a ProviderOffer from the service's `{indexer, price, max_time}` shape."""
    return ProviderOffer(
        provider_id=str(payload.get("indexer") or payload.get("id") or ""),
        price_per_thousand=price_per_thousand(payload.get("price") or 0),
        max_duration_seconds=int(payload.get("max_time") or 0),
    )


def _offers_from_payload(data: Any) -> list[ProviderOffer]:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    return [_offer_from_payload(item) for item in data.get("indexers") or []]


def _plan_from_payload(payload: dict[str, Any]) -> HostingPlan:
    """Build a HostingPlan, accepting a nested `deployment` object."""
    data = dict(payload)
    deployment = data.get("deployment")
    if "deploymentId" not in data and isinstance(deployment, dict):
        data["deploymentId"] = deployment.get("deployment") or deployment.get("id")
    data["id"] = str(data.get("id", ""))
    data["price"] = str(data.get("price", "0"))
    return HostingPlan.model_validate(data)


class HttpBillingClient(BillingServiceClient):
    """Billing service client over HTTP.

    Non-2xx responses and `{"error": ...}` bodies become `ServiceError`
    values. Transport errors (connection, timeout) propagate as httpx
    exceptions.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the billing client.

        Args:
            base_url: Billing service root URL.
            token: Bearer token of the signed-in account.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        # Reusable async client for connection pooling
        self._async_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "HttpBillingClient":
        """Build a client from application settings."""
        token = settings.billing_service_token
        return cls(
            base_url=settings.billing_service_url,
            token=token.get_secret_value() if token else None,
            timeout=settings.http_timeout,
        )

    def _get_async_client(self) -> httpx.AsyncClient:
        """Get or create the pooled async HTTP client."""
        if self._async_client is None:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._async_client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                limits=httpx.Limits(
                    max_connections=HTTP_MAX_CONNECTIONS,
                    max_keepalive_connections=HTTP_MAX_CONNECTIONS,
                    keepalive_expiry=HTTP_KEEPALIVE_TIMEOUT,
                ),
                transport=self._transport,
            )
        return self._async_client

    async def close(self) -> None:
        """Close the async HTTP client and release resources."""
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> ServiceResult[Any]:
        """Send a request and translate the response into a ServiceResult."""
        client = self._get_async_client()
        response = await client.request(method, path, **kwargs)

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            return ServiceError(error=str(data["error"]))
        if response.is_error:
            detail = data.get("message") if isinstance(data, dict) else None
            return ServiceError(
                error=str(detail or f"{response.status_code} {response.reason_phrase}")
            )
        if data is None:
            return ServiceError(error=f"Invalid response from {path}")
        return Success(data)

    def _parse(
        self, result: ServiceResult[Any], parser: Callable[[Any], _T], what: str
    ) -> ServiceResult[_T]:
        if is_service_error(result):
            logger.warning("Billing service %s failed: %s", what, result.error)
            return result
        try:
            return Success(parser(result.value))
        except (ValidationError, TypeError, ValueError, KeyError, AttributeError) as e:
            logger.error("Unexpected %s payload: %s", what, e)
            return ServiceError(error=f"Unexpected {what} response from billing service")

    async def list_indexer_offers(
        self, project_id: str, deployment_id: str
    ) -> list[ProviderOffer]:
        """Return provider offers for a deployment; empty on any failure."""
        try:
            path = PROJECT_OFFERS_PATH.format(project_id=project_id_to_decimal(project_id))
            result = await self._request(
                "GET", path, params={"deployment": deployment_id}
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Could not fetch provider offers: %s: %s", type(e).__name__, e)
            return []

        parsed = self._parse(
            result,
            _offers_from_payload,
            "offers",
        )
        if is_service_error(parsed):
            return []
        return parsed.value

    async def list_api_keys(self) -> ServiceResult[list[ApiKey]]:
        """Return the account's API keys."""
        result = await self._request("GET", API_KEYS_PATH)
        return self._parse(
            result, lambda data: [ApiKey.model_validate(item) for item in data], "API keys"
        )

    async def create_api_key(self, name: str) -> ServiceResult[ApiKey]:
        """Create an API key."""
        result = await self._request("POST", API_KEY_CREATE_PATH, json={"name": name})
        return self._parse(result, ApiKey.model_validate, "API key")

    async def list_hosting_plans(self) -> ServiceResult[list[HostingPlan]]:
        """Return the account's hosting plans."""
        result = await self._request("GET", HOSTING_PLANS_PATH)
        return self._parse(
            result, lambda data: [_plan_from_payload(item) for item in data], "hosting plans"
        )

    async def create_hosting_plan(
        self, params: HostingPlanParams
    ) -> ServiceResult[HostingPlan]:
        """Create a hosting plan."""
        result = await self._request(
            "POST", HOSTING_PLANS_PATH, json=params.model_dump(by_alias=True)
        )
        return self._parse(result, _plan_from_payload, "hosting plan")

    async def update_hosting_plan(
        self, plan_id: str, params: HostingPlanParams
    ) -> ServiceResult[HostingPlan]:
        """Update an existing hosting plan."""
        result = await self._request(
            "POST",
            HOSTING_PLAN_PATH.format(plan_id=plan_id),
            json=params.model_dump(by_alias=True),
        )
        return self._parse(result, _plan_from_payload, "hosting plan")
