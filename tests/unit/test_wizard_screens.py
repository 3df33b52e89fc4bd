"""Unit tests for wizard screen behavior with a fake app."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import pytest
from textual._context import active_app

from flexplan.core.pipeline import TransactionPipeline
from flexplan.core.wizard import PlanWizard
from flexplan.models import WizardStep
from flexplan.tui.screens.confirm import ConfirmScreen
from flexplan.tui.screens.deposit import DepositScreen
from flexplan.tui.screens.draft import DraftScreen


class _FakeWidget:
    def __init__(self) -> None:
        self.value: object = ""
        self.label: object = ""
        self.display = True
        self.focused = False

    def update(self, value: object) -> None:
        self.value = value

    def focus(self) -> None:
        self.focused = True


class _Widgets(dict):
    def __missing__(self, key: str) -> _FakeWidget:
        widget = _FakeWidget()
        self[key] = widget
        return widget


class _FakeFlexPlanApp:
    def __init__(self, wizard: Optional[PlanWizard] = None, ledger=None, billing=None) -> None:
        self.wizard = wizard
        self.ledger = ledger
        self.billing = billing
        self.token_symbol = "SQT"
        self.token_usd_price: Optional[Decimal] = None
        self.wallet_balance = Decimal(1000)
        self.push_calls: list[object] = []
        self.pop_calls = 0
        self.exit_calls: list[object] = []

    def push_screen(self, screen: object, callback: object | None = None) -> None:
        self.push_calls.append(screen)

    def pop_screen(self) -> None:
        self.pop_calls += 1

    def exit(self, result: object | None = None) -> None:
        self.exit_calls.append(result)

    def build_pipeline(self, on_progress=None) -> TransactionPipeline:
        return TransactionPipeline(ledger=self.ledger, billing=self.billing, on_progress=on_progress)


def _attach(screen: Any, monkeypatch: pytest.MonkeyPatch) -> tuple[_Widgets, list[tuple[str, str]]]:
    widgets = _Widgets()
    notices: list[tuple[str, str]] = []
    monkeypatch.setattr(screen, "query_one", lambda selector, *_args, **_kwargs: widgets[selector])
    monkeypatch.setattr(
        screen,
        "notify",
        lambda message, severity="information", **_kwargs: notices.append((message, severity)),
    )
    return widgets, notices


def _wizard(offers_factory, fake_app: _FakeFlexPlanApp, **kwargs: Any) -> PlanWizard:
    wizard = PlanWizard(
        deployment_id="QmDeployment",
        offers=offers_factory(10, 20, 30, 40, 50, 60),
        on_cancel=lambda: fake_app.exit(False),
        **kwargs,
    )
    fake_app.wizard = wizard
    return wizard


def test_draft_custom_without_price_notifies_and_stays(
    offers_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app)
    wizard.select_tier("custom")
    screen = DraftScreen()
    _widgets, notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.action_next()
        assert notices == [("Please enter a price", "error")]
        assert fake_app.push_calls == []

        wizard.set_price("25")
        screen.action_next()
    finally:
        active_app.reset(token)

    assert len(fake_app.push_calls) == 1
    assert isinstance(fake_app.push_calls[0], DepositScreen)
    assert wizard.step == WizardStep.DEPOSIT


def test_draft_mount_renders_tier_prices(offers_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_app = _FakeFlexPlanApp()
    fake_app.token_usd_price = Decimal("0.01")
    _wizard(offers_factory, fake_app)
    screen = DraftScreen()
    widgets, _notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.on_mount()
    finally:
        active_app.reset(token)

    assert widgets["#tier-economy"].value is True
    assert "40.00 SQT per 1000 reqs" in str(widgets["#tier-economy"].label)
    assert "(~US$0.4000)" in str(widgets["#tier-economy"].label)
    assert "60.00 SQT" in str(widgets["#tier-performance"].label)
    assert widgets["#custom-section"].display is False
    assert widgets["#matched-count"].value == "Matched providers: 0"


def test_draft_back_cancels_wizard(offers_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app)
    screen = DraftScreen()
    _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.action_go_back()
    finally:
        active_app.reset(token)

    assert wizard.state.status == "cancelled"
    assert fake_app.exit_calls == [False]


def test_deposit_balances_and_skip_visibility(
    offers_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app, billing_balance=Decimal(300))
    wizard.next_step()
    screen = DepositScreen()
    widgets, _notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.refresh_balances()
    finally:
        active_app.reset(token)

    assert widgets["#skip-btn"].display is True
    assert widgets["#low-balance-warning"].display is True
    assert "300.00 SQT" in str(widgets["#billing-balance"].value)
    assert "7,500 requests" in str(widgets["#affordable-requests"].value)
    assert "6,400.00 SQT" in str(widgets["#suggested-deposit"].value)


def test_deposit_skip_hidden_for_unfunded_account(
    offers_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app)
    wizard.next_step()
    screen = DepositScreen()
    widgets, notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.refresh_balances()
        screen.action_skip()
    finally:
        active_app.reset(token)

    assert widgets["#skip-btn"].display is False
    assert widgets["#low-balance-warning"].display is False
    assert notices and notices[0][1] == "warning"
    assert fake_app.push_calls == []


def test_deposit_submit_validates_minimum(offers_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app)
    wizard.next_step()
    screen = DepositScreen()
    _widgets, notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        wizard.set_deposit("100")
        screen.action_submit()
        wizard.set_deposit("500")
        screen.action_submit()
    finally:
        active_app.reset(token)

    assert notices == [("Minimum deposit amount is 500", "error")]
    assert isinstance(fake_app.push_calls[0], ConfirmScreen)


def test_deposit_back_returns_to_draft(offers_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app)
    wizard.next_step()
    screen = DepositScreen()
    _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.action_go_back()
    finally:
        active_app.reset(token)

    assert wizard.step == WizardStep.DRAFT
    assert fake_app.pop_calls == 1


def test_deposit_resume_clears_confirmed_amount(
    offers_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp()
    wizard = _wizard(offers_factory, fake_app, billing_balance=Decimal(500))
    wizard.next_step()
    screen = DepositScreen()
    widgets, _notices = _attach(screen, monkeypatch)
    widgets["#amount-input"].value = "500"
    # Deposit confirmed on-chain, a later stage failed, user pressed Back
    wizard.set_deposit(None)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.on_screen_resume()
    finally:
        active_app.reset(token)

    assert widgets["#amount-input"].value == ""
    assert widgets["#skip-btn"].display is True
    assert "500.00 SQT" in str(widgets["#billing-balance"].value)


def _confirm_ready(offers_factory, fake_app: _FakeFlexPlanApp) -> PlanWizard:
    wizard = _wizard(offers_factory, fake_app)
    wizard.next_step()
    wizard.set_deposit("500")
    wizard.next_step()
    return wizard


@pytest.mark.asyncio
async def test_confirm_success_shows_done(
    offers_factory, ledger, billing, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp(ledger=ledger, billing=billing)
    wizard = _confirm_ready(offers_factory, fake_app)
    screen = ConfirmScreen()
    widgets, _notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        screen.on_mount()
        assert str(widgets["#stage-deposit"].value).startswith("○")
        await screen._run_pipeline()
        screen.action_finish()
    finally:
        active_app.reset(token)

    assert wizard.state.status == "succeeded"
    assert widgets["#success-state"].display is True
    assert widgets["#done-btn"].display is True
    assert str(widgets["#stage-plan"].value).startswith("✓")
    assert fake_app.exit_calls == [True]


@pytest.mark.asyncio
async def test_confirm_failure_shows_error_and_retry(
    offers_factory, ledger, billing, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp(ledger=ledger, billing=billing)
    wizard = _confirm_ready(offers_factory, fake_app)
    ledger.fail_approve = "User rejected the request"
    screen = ConfirmScreen()
    widgets, _notices = _attach(screen, monkeypatch)
    workers: list[object] = []
    monkeypatch.setattr(screen, "run_worker", lambda work, **_kwargs: workers.append(work))

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        await screen._run_pipeline()
        screen.action_finish()
        assert fake_app.exit_calls == []

        ledger.fail_approve = None
        screen.action_retry()
        assert len(workers) == 1
        await workers[0]  # type: ignore[misc]
    finally:
        active_app.reset(token)

    assert wizard.state.status == "succeeded"
    assert widgets["#error-state"].display is False
    assert widgets["#success-state"].display is True


@pytest.mark.asyncio
async def test_confirm_failure_message_names_stage(
    offers_factory, ledger, billing, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_app = _FakeFlexPlanApp(ledger=ledger, billing=billing)
    _confirm_ready(offers_factory, fake_app)
    billing.plan_error = "Deployment is not available"
    screen = ConfirmScreen()
    widgets, _notices = _attach(screen, monkeypatch)

    token = active_app.set(fake_app)  # type: ignore[arg-type]
    try:
        await screen._run_pipeline()
    finally:
        active_app.reset(token)

    detail = str(widgets["#error-detail"].value)
    assert detail == "Create Flex Plan failed: Deployment is not available"
    assert widgets["#retry-btn"].display is True
    assert str(widgets["#stage-plan"].value).startswith("✗")
    assert str(widgets["#stage-deposit"].value).startswith("✓")
