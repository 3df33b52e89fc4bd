"""Flex Plan wizard TUI app and lifecycle."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional, Sequence

from textual.app import App

from flexplan.clients.billing import BillingServiceClient
from flexplan.clients.ledger import LedgerClient, LedgerError
from flexplan.config import Settings, get_settings
from flexplan.core.balances import BalanceSnapshot, BalanceTracker
from flexplan.core.pipeline import PipelineResult, ProgressCallback, TransactionPipeline
from flexplan.core.wizard import PlanWizard
from flexplan.models import ApiKey, HostingPlan, ProviderOffer
from flexplan.tui.screens.draft import DraftScreen

logger = logging.getLogger(__name__)


class FlexPlanApp(App):
    """Flex Plan wizard.

    Guides the user through:
    1. Choosing a pricing tier (or a custom price)
    2. Depositing to the billing account (skippable when already funded)
    3. Approving the transactions that create the plan

    Exits with True once the plan is created or updated, False on cancel.
    """

    CSS_PATH = "theme.tcss"
    TITLE = "Flex Plan"
    SUB_TITLE = "Pay-per-request billing"

    BINDINGS = [
        ("q", "app.quit", "Quit"),
    ]

    def __init__(
        self,
        deployment_id: str,
        ledger: LedgerClient,
        billing: BillingServiceClient,
        offers: Sequence[ProviderOffer] = (),
        existing_plan: Optional[HostingPlan] = None,
        existing_api_key: Optional[ApiKey] = None,
        settings: Optional[Settings] = None,
        **kwargs,
    ):  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.settings = settings or get_settings()
        self.ledger = ledger
        self.billing = billing
        self.wallet_balance: Decimal = Decimal(0)
        self.pipeline_result: Optional[PipelineResult] = None
        self.wizard = PlanWizard(
            deployment_id=deployment_id,
            offers=offers,
            existing_plan=existing_plan,
            existing_api_key=existing_api_key,
            on_cancel=self._on_cancel,
            on_success=self._on_success,
        )
        self.balances = BalanceTracker(
            ledger,
            debounce_seconds=self.settings.debounce_seconds,
            on_update=self._on_balances,
        )

    @property
    def token_symbol(self) -> str:
        """Return the token symbol shown next to amounts."""
        return self.settings.token_symbol

    @property
    def token_usd_price(self) -> Optional[Decimal]:
        """Return the configured USD price of one token, if any."""
        return self.settings.token_usd_price

    def on_mount(self) -> None:
        """Push the first screen and load balances."""
        self.push_screen(DraftScreen())
        self.balances.account_changed(self.ledger.account)
        self.run_worker(self._load_balances(), exclusive=True, group="balances")

    async def _load_balances(self) -> None:
        try:
            await self.balances.refresh()
        except LedgerError as e:
            logger.warning("Could not load balances: %s", e)
            self.notify(f"Could not load balances: {e}", severity="warning")

    def _on_balances(self, snapshot: BalanceSnapshot) -> None:
        self.wallet_balance = snapshot.wallet_balance
        self.wizard.update_balances(snapshot.billing_balance, snapshot.allowance)
        refresh = getattr(self.screen, "refresh_balances", None)
        if callable(refresh):
            refresh()

    def switch_account(self, account: str) -> Optional[asyncio.Task[BalanceSnapshot]]:
        """React to the wallet switching accounts (debounced refetch)."""
        return self.balances.account_changed(account)

    def build_pipeline(self, on_progress: Optional[ProgressCallback] = None) -> TransactionPipeline:
        """Create a pipeline bound to this session's clients."""
        return TransactionPipeline(
            ledger=self.ledger, billing=self.billing, on_progress=on_progress
        )

    def _on_cancel(self) -> None:
        self.exit(result=False)

    def _on_success(self, result: PipelineResult) -> None:
        self.pipeline_result = result
        logger.info("Flex Plan %s ready", result.plan.id)

    async def on_unmount(self) -> None:
        """Drop pending refetches; wizard state is discarded with the app."""
        await self.balances.aclose()
        await self.billing.close()
