"""Screen 1: Plan draft (pricing tier selection)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, RadioButton, RadioSet, Static

from flexplan.core.affordability import usd_estimate
from flexplan.core.wizard import WizardValidationError
from flexplan.tui.constants import STEP_TITLES, TIER_MAP, TIERS
from flexplan.tui.formatting import format_amount, format_usd
from flexplan.tui.keybindings import (
    BACK_ESCAPE_BINDING,
    NAV_DOWN_J_BINDING,
    NAV_UP_K_BINDING,
    NEXT_ENTER_BINDING,
    NEXT_N_BINDING,
    QUIT_Q_BINDING,
    compose_bindings,
)

if TYPE_CHECKING:
    from flexplan.tui.app import FlexPlanApp


class DraftScreen(Screen):
    """Choose an economy, performance or custom price for the plan."""

    BINDINGS = compose_bindings(
        BACK_ESCAPE_BINDING,
        QUIT_Q_BINDING,
        NAV_DOWN_J_BINDING,
        NAV_UP_K_BINDING,
        NEXT_ENTER_BINDING,
        NEXT_N_BINDING,
    )

    def compose(self) -> ComposeResult:
        """Build the tier selection UI."""
        yield Header()
        with Container(id="draft-container"):
            yield Static(STEP_TITLES[0], id="draft-title", classes="step-title")
            yield Static(
                "Qualified providers are allocated to your endpoint based on price "
                "and performance. Choose a plan type (you can change it later).",
                id="draft-subtitle",
            )
            with Vertical(id="draft-form"):
                with RadioSet(id="tier-radio"):
                    for tier in TIERS:
                        yield RadioButton(tier.display_name, id=f"tier-{tier.id}")
                yield Static("", id="tier-hint")

                with Vertical(id="custom-section"):
                    yield Static("Maximum price (per 1000 requests)", id="price-label")
                    yield Input(placeholder="Enter price", id="price-input")
                    yield Static("Maximum allocated providers", id="maximum-label")
                    yield Input(
                        placeholder="Enter maximum allocated providers (min 2)",
                        id="maximum-input",
                    )
                    yield Static("", id="matched-count")

            with Horizontal(id="form-actions"):
                yield Button("Back", id="back-btn")
                yield Button("Next", id="next-btn", variant="primary")
        yield Footer()

    @property
    def _flex_app(self) -> "FlexPlanApp":
        return self.app  # type: ignore[return-value]

    def on_mount(self) -> None:
        """Reflect the wizard draft in the form."""
        wizard = self._flex_app.wizard
        draft = wizard.state.plan_draft
        if wizard.is_edit:
            self.query_one("#draft-title", Static).update("Update Flex Plan")
        self.query_one(f"#tier-{draft.tier}", RadioButton).value = True
        if draft.price is not None:
            self.query_one("#price-input", Input).value = str(draft.price)
        if draft.maximum is not None:
            self.query_one("#maximum-input", Input).value = str(draft.maximum)
        self._render_tier_labels()
        self._update_tier_view()
        self.query_one("#tier-radio", RadioSet).focus()

    def _tier_label(self, tier_id: str) -> str:
        flex_app = self._flex_app
        meta = TIER_MAP[tier_id]
        price = flex_app.wizard.tiers.for_tier(meta.id)  # type: ignore[arg-type]
        if price is None:
            return meta.display_name
        usd = format_usd(usd_estimate(price, flex_app.token_usd_price))
        amount = format_amount(price, flex_app.token_symbol)
        return f"{meta.display_name}  {amount} per 1000 reqs {usd}".rstrip()

    def _render_tier_labels(self) -> None:
        for tier in TIERS:
            button = self.query_one(f"#tier-{tier.id}", RadioButton)
            button.label = self._tier_label(tier.id)

    def _update_tier_view(self) -> None:
        wizard = self._flex_app.wizard
        tier = wizard.state.plan_draft.tier
        self.query_one("#tier-hint", Static).update(TIER_MAP[tier].description)
        self.query_one("#custom-section", Vertical).display = tier == "custom"
        self._update_matched_count()

    def _update_matched_count(self) -> None:
        count = self._flex_app.wizard.matched_providers()
        self.query_one("#matched-count", Static).update(f"Matched providers: {count}")

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        """Select the pressed tier."""
        if event.pressed and event.pressed.id:
            tier_id = event.pressed.id.replace("tier-", "")
            wizard = self._flex_app.wizard
            entering_custom = tier_id == "custom" and wizard.state.plan_draft.tier != "custom"
            wizard.select_tier(tier_id)  # type: ignore[arg-type]
            if entering_custom:
                self.query_one("#price-input", Input).value = ""
                self.query_one("#maximum-input", Input).value = ""
            self._update_tier_view()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Push custom field edits into the wizard."""
        wizard = self._flex_app.wizard
        if event.input.id == "price-input":
            wizard.set_price(event.value)
            self._update_matched_count()
        elif event.input.id == "maximum-input":
            wizard.set_maximum(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "back-btn":
            self.action_go_back()
        elif event.button.id == "next-btn":
            self.action_next()

    def action_cursor_down(self) -> None:
        """Move selection down."""
        self.query_one("#tier-radio", RadioSet).action_next_button()

    def action_cursor_up(self) -> None:
        """Move selection up."""
        self.query_one("#tier-radio", RadioSet).action_previous_button()

    def action_next(self) -> None:
        """Validate the draft and proceed to the deposit screen."""
        try:
            self._flex_app.wizard.next_step()
        except WizardValidationError as e:
            self.notify(e.message, severity="error")
            return

        from flexplan.tui.screens.deposit import DepositScreen

        self.app.push_screen(DepositScreen())

    def action_go_back(self) -> None:
        """Leave the wizard (the app exits through the cancel callback)."""
        self._flex_app.wizard.previous_step()

    def action_quit(self) -> None:
        """Exit the application."""
        self.app.exit()
