"""Unit tests for balance snapshots and account-switch refetching."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from flexplan.core.balances import BalanceSnapshot, BalanceTracker, fetch_balances
from flexplan.core.units import to_base_units

OTHER_ACCOUNT = "0x" + "33" * 20


@pytest.mark.asyncio
async def test_fetch_balances_converts_to_human_scale(ledger) -> None:
    ledger.billing_units = to_base_units("350.5")
    ledger.allowance_units = to_base_units(20)

    snapshot = await fetch_balances(ledger)

    assert snapshot.account == ledger.account
    assert snapshot.wallet_balance == Decimal(10_000)
    assert snapshot.billing_balance == Decimal("350.5")
    assert snapshot.allowance == Decimal(20)
    assert snapshot.low_billing_balance is True


def test_unfunded_account_is_not_low() -> None:
    snapshot = BalanceSnapshot(
        account="0x", wallet_balance=Decimal(1), billing_balance=Decimal(0), allowance=Decimal(0)
    )
    assert snapshot.low_billing_balance is False


@pytest.mark.asyncio
async def test_first_account_notification_does_not_refetch(ledger) -> None:
    updates: list[BalanceSnapshot] = []
    tracker = BalanceTracker(ledger, debounce_seconds=0, on_update=updates.append)

    assert tracker.account_changed(ledger.account) is None
    await asyncio.sleep(0)

    assert updates == []
    assert ledger.calls == []
    assert tracker.account == ledger.account


@pytest.mark.asyncio
async def test_account_switch_refetches_after_debounce(ledger) -> None:
    updates: list[BalanceSnapshot] = []
    tracker = BalanceTracker(ledger, debounce_seconds=0.01, on_update=updates.append)
    tracker.account_changed(ledger.account)

    task = tracker.account_changed(OTHER_ACCOUNT)
    assert task is not None
    snapshot = await task

    assert snapshot.account == OTHER_ACCOUNT
    assert updates == [snapshot]
    assert tracker.snapshot == snapshot


@pytest.mark.asyncio
async def test_rapid_switches_collapse_into_one_refetch(ledger) -> None:
    updates: list[BalanceSnapshot] = []
    tracker = BalanceTracker(ledger, debounce_seconds=0.05, on_update=updates.append)
    tracker.account_changed(ledger.account)

    first = tracker.account_changed(OTHER_ACCOUNT)
    second = tracker.account_changed(ledger.account)
    assert first is not None and second is not None
    await second
    await asyncio.sleep(0)

    assert first.cancelled()
    assert len(updates) == 1
    assert updates[0].account == ledger.account


@pytest.mark.asyncio
async def test_aclose_cancels_pending_refetch(ledger) -> None:
    tracker = BalanceTracker(ledger, debounce_seconds=10)
    tracker.account_changed(ledger.account)
    task = tracker.account_changed(OTHER_ACCOUNT)

    await tracker.aclose()

    assert task is not None and task.cancelled()
    assert ledger.calls == []


@pytest.mark.asyncio
async def test_refresh_fetches_immediately(ledger) -> None:
    updates: list[BalanceSnapshot] = []
    tracker = BalanceTracker(ledger, on_update=updates.append)
    snapshot = await tracker.refresh()
    assert updates == [snapshot]
    assert snapshot.account == ledger.account


@pytest.mark.asyncio
async def test_switched_account_reads_its_own_allowance(ledger) -> None:
    snapshot = await fetch_balances(ledger, OTHER_ACCOUNT)

    assert snapshot.account == OTHER_ACCOUNT
    assert ("allowance", ledger.billing_address, OTHER_ACCOUNT) in ledger.calls
    assert ("balance_of", OTHER_ACCOUNT) in ledger.calls
    assert ("billing_balance", OTHER_ACCOUNT) in ledger.calls
