"""Wallet/billing balance snapshots and account-switch refetching."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from flexplan.clients.ledger import LedgerClient

from .affordability import low_balance_warning
from .units import from_base_units

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


@dataclass(frozen=True)
class BalanceSnapshot:
    """Human-scale balances of one account at one point in time."""

    account: str
    wallet_balance: Decimal
    billing_balance: Decimal
    allowance: Decimal

    @property
    def low_billing_balance(self) -> bool:
        """True if the funded billing account is running low."""
        return low_balance_warning(self.billing_balance)


async def fetch_balances(ledger: LedgerClient, account: Optional[str] = None) -> BalanceSnapshot:
    """Read wallet balance, billing balance and allowance for an account."""
    address = account or ledger.account
    wallet = await ledger.balance_of(address)
    billing = await ledger.billing_balance(address)
    allowance = await ledger.allowance(ledger.billing_address, owner=address)
    return BalanceSnapshot(
        account=address,
        wallet_balance=from_base_units(wallet),
        billing_balance=from_base_units(billing),
        allowance=from_base_units(allowance),
    )


class BalanceTracker:
    """Keeps a balance snapshot current across account switches.

    The first `account_changed` call only records the account (its data was
    loaded on mount); later switches schedule a debounced refetch, and a
    newer switch cancels a pending one.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_update: Optional[Callable[[BalanceSnapshot], None]] = None,
    ) -> None:
        self._ledger = ledger
        self._debounce = debounce_seconds
        self._on_update = on_update
        self._mounted = False
        self._account: Optional[str] = None
        self._pending: Optional[asyncio.Task[BalanceSnapshot]] = None
        self.snapshot: Optional[BalanceSnapshot] = None

    @property
    def account(self) -> Optional[str]:
        """Return the last account seen."""
        return self._account

    async def refresh(self) -> BalanceSnapshot:
        """Fetch balances for the current account now."""
        snapshot = await fetch_balances(self._ledger, self._account)
        self.snapshot = snapshot
        if self._on_update is not None:
            self._on_update(snapshot)
        return snapshot

    def account_changed(self, account: Optional[str]) -> Optional[asyncio.Task[BalanceSnapshot]]:
        """Handle an account switch; returns the scheduled refetch task, if any."""
        self._account = account
        if not self._mounted:
            self._mounted = True
            return None
        if not account:
            return None

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.ensure_future(self._debounced_refresh())
        return self._pending

    async def _debounced_refresh(self) -> BalanceSnapshot:
        await asyncio.sleep(self._debounce)
        logger.debug("Refetching balances for %s", self._account)
        return await self.refresh()

    async def aclose(self) -> None:
        """Cancel any pending refetch."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            try:
                await self._pending
            except asyncio.CancelledError:
                pass
        self._pending = None
