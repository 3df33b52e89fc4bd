"""Screen 2: Deposit to the billing account."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Static

from flexplan.core.affordability import usd_estimate
from flexplan.core.constants import LOW_BALANCE_FLOOR, MIN_DEPOSIT
from flexplan.core.wizard import WizardStateError, WizardValidationError
from flexplan.tui.constants import DEPOSIT_INTRO, STEP_TITLES
from flexplan.tui.formatting import format_amount, format_usd
from flexplan.tui.keybindings import (
    BACK_ESCAPE_BINDING,
    SKIP_S_BINDING,
    SUBMIT_ENTER_BINDING,
    compose_bindings,
)

if TYPE_CHECKING:
    from flexplan.tui.app import FlexPlanApp


class DepositScreen(Screen):
    """Enter a deposit amount, or skip when the billing account is funded."""

    BINDINGS = compose_bindings(
        BACK_ESCAPE_BINDING,
        SUBMIT_ENTER_BINDING,
        SKIP_S_BINDING,
    )

    def compose(self) -> ComposeResult:
        """Build the deposit UI."""
        yield Header()
        with Container(id="deposit-container"):
            yield Static(STEP_TITLES[1], id="deposit-title", classes="step-title")
            yield Static(DEPOSIT_INTRO, id="deposit-intro")

            with Vertical(id="deposit-summary"):
                yield Static("", id="wallet-balance")
                yield Static("", id="billing-balance")
                yield Static("", id="affordable-requests")
                yield Static("", id="low-balance-warning", classes="warning")

            with Vertical(id="deposit-form"):
                yield Static("Deposit amount", id="amount-label")
                yield Input(placeholder=f"Minimum {MIN_DEPOSIT}", id="amount-input")
                yield Static("", id="suggested-deposit", classes="hint")

            with Horizontal(id="form-actions"):
                yield Button("Back", id="back-btn")
                yield Button("Skip", id="skip-btn")
                yield Button("Deposit", id="deposit-btn", variant="primary")
        yield Footer()

    @property
    def _flex_app(self) -> "FlexPlanApp":
        return self.app  # type: ignore[return-value]

    def on_mount(self) -> None:
        """Fill balances and restore a previous deposit entry."""
        self._sync_amount()
        self.refresh_balances()
        self.query_one("#amount-input", Input).focus()

    def on_screen_resume(self) -> None:
        """Back from confirmation: a confirmed deposit has cleared the draft."""
        self._sync_amount()
        self.refresh_balances()

    def _sync_amount(self) -> None:
        amount = self._flex_app.wizard.state.deposit_draft.amount
        field = self.query_one("#amount-input", Input)
        value = "" if amount is None else str(amount)
        if field.value != value:
            field.value = value

    def refresh_balances(self) -> None:
        """Redraw balance-derived figures; called on every balance update."""
        flex_app = self._flex_app
        wizard = flex_app.wizard
        symbol = flex_app.token_symbol
        state = wizard.state

        self.query_one("#wallet-balance", Static).update(
            f"Wallet balance: {format_amount(flex_app.wallet_balance, symbol)}"
        )
        self.query_one("#billing-balance", Static).update(
            f"Billing account balance: {format_amount(state.billing_balance, symbol)}"
        )
        self.query_one("#affordable-requests", Static).update(
            f"Your balance pays for about {wizard.affordable_requests():,} requests"
        )

        warning = self.query_one("#low-balance-warning", Static)
        if wizard.low_balance():
            warning.update(
                f"Your billing account is below {LOW_BALANCE_FLOOR} {symbol}. "
                "Top it up to keep your Flex Plan running."
            )
            warning.display = True
        else:
            warning.display = False

        suggestion = wizard.suggested_deposit()
        usd = format_usd(usd_estimate(suggestion, flex_app.token_usd_price))
        self.query_one("#suggested-deposit", Static).update(
            f"Suggested balance for this plan: {format_amount(suggestion, symbol)} {usd}".rstrip()
        )
        self.query_one("#skip-btn", Button).display = wizard.can_skip_deposit

    def on_input_changed(self, event: Input.Changed) -> None:
        """Record the deposit amount."""
        if event.input.id == "amount-input":
            self._flex_app.wizard.set_deposit(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Submit on enter inside the amount field."""
        if event.input.id == "amount-input":
            self.action_submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "back-btn":
            self.action_go_back()
        elif event.button.id == "skip-btn":
            self.action_skip()
        elif event.button.id == "deposit-btn":
            self.action_submit()

    def _push_confirm(self) -> None:
        from flexplan.tui.screens.confirm import ConfirmScreen

        self.app.push_screen(ConfirmScreen())

    def action_submit(self) -> None:
        """Validate the deposit and proceed to confirmation."""
        try:
            self._flex_app.wizard.next_step()
        except WizardValidationError as e:
            self.notify(e.message, severity="error")
            return
        self._push_confirm()

    def action_skip(self) -> None:
        """Skip depositing when the billing account already holds funds."""
        try:
            self._flex_app.wizard.skip_deposit()
        except WizardStateError as e:
            self.notify(str(e), severity="warning")
            return
        self._push_confirm()

    def action_go_back(self) -> None:
        """Return to the plan draft."""
        self._flex_app.wizard.previous_step()
        self.app.pop_screen()
