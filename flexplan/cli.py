"""[Layer: Presentation] Typer CLI Commands."""

import asyncio
from importlib.metadata import PackageNotFoundError, version as get_package_version
from typing import Optional

import typer

from flexplan.clients.http_billing import HttpBillingClient
from flexplan.clients.ledger import LedgerError
from flexplan.clients.web3_ledger import Web3LedgerClient
from flexplan.config import Settings, get_example_config, get_settings
from flexplan.core.balances import fetch_balances
from flexplan.core.constants import LOW_BALANCE_FLOOR, RESERVED_API_KEY_NAME
from flexplan.core.pricing import estimate_tiers
from flexplan.models import ApiKey, HostingPlan, ProviderOffer, is_service_error
from flexplan.tui.formatting import format_amount


def _get_version() -> str:
    """Get version from package metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("flexplan")
    except PackageNotFoundError:
        return "0.0.0-dev"


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"flexplan {_get_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="flexplan",
    help="Create and manage Flex Plans for pay-per-request data access.",
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Flex Plan provisioning."""


def _ledger_client(settings: Settings) -> Web3LedgerClient:
    try:
        return Web3LedgerClient.from_settings(settings)
    except ValueError as e:
        typer.echo(f"Ledger is not configured: {e}", err=True)
        typer.echo("Run 'flexplan config' for an example configuration.", err=True)
        raise typer.Exit(1)


async def _load_session(
    billing: HttpBillingClient, project_id: str, deployment_id: str
) -> tuple[list[ProviderOffer], Optional[HostingPlan], Optional[ApiKey]]:
    """Fetch offers plus any plan and API key the account already has."""
    try:
        offers = await billing.list_indexer_offers(project_id, deployment_id)

        existing_plan: Optional[HostingPlan] = None
        plans = await billing.list_hosting_plans()
        if is_service_error(plans):
            typer.echo(f"Warning: could not list hosting plans: {plans.error}", err=True)
        else:
            existing_plan = next(
                (plan for plan in plans.value if plan.deployment_id == deployment_id), None
            )

        existing_key: Optional[ApiKey] = None
        keys = await billing.list_api_keys()
        if not is_service_error(keys):
            existing_key = next(
                (key for key in keys.value if key.name == RESERVED_API_KEY_NAME), None
            )
    finally:
        # The TUI runs its own event loop and reopens the pooled client there
        await billing.close()
    return offers, existing_plan, existing_key


@app.command()
def create(
    project_id: str = typer.Argument(..., help="Project the deployment belongs to"),
    deployment_id: str = typer.Argument(..., help="Deployment to create the plan for"),
) -> None:
    """Create (or update) a Flex Plan with the interactive wizard."""
    settings = get_settings()
    ledger = _ledger_client(settings)
    billing = HttpBillingClient.from_settings(settings)

    offers, existing_plan, existing_key = asyncio.run(
        _load_session(billing, project_id, deployment_id)
    )
    if not offers:
        typer.echo("No provider offers found; only a custom price is available.")
    if existing_plan is not None:
        typer.echo(f"Updating existing Flex Plan {existing_plan.id}.")

    # Lazy import: the TUI pulls in Textual
    from flexplan.tui.app import FlexPlanApp

    flex_app = FlexPlanApp(
        deployment_id=deployment_id,
        ledger=ledger,
        billing=billing,
        offers=offers,
        existing_plan=existing_plan,
        existing_api_key=existing_key,
        settings=settings,
    )
    if flex_app.run() is not True or flex_app.pipeline_result is None:
        raise typer.Exit(0)

    result = flex_app.pipeline_result
    typer.echo(f"Flex Plan {result.plan.id} is active for {deployment_id}.")
    if result.api_key is not None:
        typer.echo(f"API key: {result.api_key.name}")


@app.command()
def tiers(
    project_id: str = typer.Argument(..., help="Project the deployment belongs to"),
    deployment_id: str = typer.Argument(..., help="Deployment to price"),
) -> None:
    """Print the recommended economy and performance prices."""
    settings = get_settings()
    billing = HttpBillingClient.from_settings(settings)

    async def _fetch() -> list[ProviderOffer]:
        try:
            return await billing.list_indexer_offers(project_id, deployment_id)
        finally:
            await billing.close()

    offers = asyncio.run(_fetch())
    estimate = estimate_tiers(offers)
    symbol = settings.token_symbol
    typer.echo(f"Provider offers: {len(offers)}")
    typer.echo(f"Economy:     {format_amount(estimate.economy, symbol)} per 1000 requests")
    typer.echo(f"Performance: {format_amount(estimate.performance, symbol)} per 1000 requests")


@app.command()
def balance() -> None:
    """Print wallet and billing account balances."""
    settings = get_settings()
    ledger = _ledger_client(settings)
    try:
        snapshot = asyncio.run(fetch_balances(ledger))
    except LedgerError as e:
        typer.echo(f"Could not read balances: {e}", err=True)
        raise typer.Exit(1)

    symbol = settings.token_symbol
    typer.echo(f"Account:         {snapshot.account}")
    typer.echo(f"Wallet balance:  {format_amount(snapshot.wallet_balance, symbol)}")
    typer.echo(f"Billing balance: {format_amount(snapshot.billing_balance, symbol)}")
    typer.echo(f"Allowance:       {format_amount(snapshot.allowance, symbol)}")
    if snapshot.low_billing_balance:
        typer.echo(
            f"Warning: billing balance is below {LOW_BALANCE_FLOOR} {symbol}; "
            "your Flex Plan may be cancelled when it runs out."
        )


@app.command()
def config() -> None:
    """Print an example config.toml."""
    typer.echo(get_example_config())


@app.command()
def version() -> None:
    """Show version."""
    typer.echo(f"flexplan {_get_version()}")
