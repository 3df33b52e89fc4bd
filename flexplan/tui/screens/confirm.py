"""Screen 3: Approve the transactions that create the plan."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, LoadingIndicator, Static

from flexplan.core.pipeline import STAGE_LABELS, STAGES, PipelineStageError, StageName, StageStatus
from flexplan.tui.constants import CONFIRM_INTRO, STAGE_ICONS, STEP_TITLES
from flexplan.tui.formatting import format_amount, format_error
from flexplan.tui.keybindings import (
    BACK_ESCAPE_BINDING,
    CONFIRM_ENTER_BINDING,
    FINISH_D_BINDING,
    RETRY_R_BINDING,
    compose_bindings,
)

if TYPE_CHECKING:
    from flexplan.tui.app import FlexPlanApp

logger = logging.getLogger(__name__)


class ConfirmScreen(Screen):
    """Show the checklist and run the transaction pipeline."""

    BINDINGS = compose_bindings(
        BACK_ESCAPE_BINDING,
        CONFIRM_ENTER_BINDING,
        RETRY_R_BINDING,
        FINISH_D_BINDING,
    )

    def __init__(self) -> None:
        super().__init__()
        self._error: Optional[str] = None
        self._running: bool = False
        self._succeeded: bool = False

    def compose(self) -> ComposeResult:
        """Build the confirmation UI."""
        yield Header()
        with Container(id="confirm-container"):
            yield Static(STEP_TITLES[2], id="confirm-title", classes="step-title")
            yield Static(CONFIRM_INTRO, id="confirm-intro")
            yield Static("", id="plan-summary")

            with Vertical(id="checklist"):
                for stage in STAGES:
                    yield Static("", id=f"stage-{stage}", classes="stage")

            with Vertical(id="confirm-status"):
                with Vertical(id="loading-state"):
                    yield LoadingIndicator(id="loader")
                    yield Static("Waiting for wallet approval...", id="loading-text")

                with Vertical(id="success-state"):
                    yield Static("✓", id="success-icon")
                    yield Static("Flex Plan ready!", id="success-text")
                    yield Static("", id="success-detail")

                with Vertical(id="error-state"):
                    yield Static("✗", id="error-icon")
                    yield Static("Transaction failed", id="error-text")
                    yield Static("", id="error-detail")

            with Horizontal(id="confirm-actions"):
                yield Button("Back", id="back-btn")
                yield Button("Retry", id="retry-btn")
                yield Button("Approve", id="approve-btn", variant="primary")
                yield Button("Done", id="done-btn", variant="primary")
        yield Footer()

    @property
    def _flex_app(self) -> "FlexPlanApp":
        return self.app  # type: ignore[return-value]

    def on_mount(self) -> None:
        """Show the checklist with pre-satisfied items ticked."""
        self._render_summary()
        self._render_checklist()
        self._show_ready()

    def _render_summary(self) -> None:
        flex_app = self._flex_app
        draft = flex_app.wizard.state.plan_draft
        price = format_amount(draft.price, flex_app.token_symbol)
        self.query_one("#plan-summary", Static).update(
            f"Maximum price: {price} per 1000 requests · "
            f"Maximum allocated providers: {draft.maximum}"
        )

    def _render_checklist(self) -> None:
        wizard = self._flex_app.wizard
        satisfied = {item.stage: item.satisfied for item in wizard.checklist()}
        for stage in STAGES:
            status: StageStatus = "done" if satisfied.get(stage) else "pending"
            self._set_stage(stage, status)
        if wizard.is_edit:
            self._set_label("plan", "pending", "Update Flex Plan")

    def _set_stage(self, stage: StageName, status: StageStatus) -> None:
        self._set_label(stage, status, STAGE_LABELS[stage])

    def _set_label(self, stage: StageName, status: StageStatus, label: str) -> None:
        self.query_one(f"#stage-{stage}", Static).update(f"{STAGE_ICONS[status]} {label}")

    def on_stage_progress(self, stage: StageName, status: StageStatus) -> None:
        """Pipeline progress callback."""
        if stage == "plan" and self._flex_app.wizard.is_edit:
            self._set_label(stage, status, "Update Flex Plan")
        else:
            self._set_stage(stage, status)

    def _set_buttons(self, back: bool, retry: bool, approve: bool, done: bool) -> None:
        self.query_one("#back-btn", Button).display = back
        self.query_one("#retry-btn", Button).display = retry
        self.query_one("#approve-btn", Button).display = approve
        self.query_one("#done-btn", Button).display = done

    def _show_states(self, loading: bool, success: bool, error: bool) -> None:
        self.query_one("#loading-state", Vertical).display = loading
        self.query_one("#success-state", Vertical).display = success
        self.query_one("#error-state", Vertical).display = error

    def _show_ready(self) -> None:
        """Show the checklist awaiting approval."""
        self._show_states(False, False, False)
        self._set_buttons(back=True, retry=False, approve=True, done=False)

    def _show_loading(self) -> None:
        """Show loading state."""
        self._show_states(True, False, False)
        self._set_buttons(back=False, retry=False, approve=False, done=False)

    def _show_success(self, detail: str) -> None:
        """Show success state."""
        self._show_states(False, True, False)
        self.query_one("#success-detail", Static).update(detail)
        self._set_buttons(back=False, retry=False, approve=False, done=True)

    def _show_error(self, message: str) -> None:
        """Show error state with message."""
        self._show_states(False, False, True)
        self.query_one("#error-detail", Static).update(message)
        self._set_buttons(back=True, retry=True, approve=False, done=False)

    async def _run_pipeline(self) -> None:
        """Run the pipeline; completed stages are skipped on retry."""
        flex_app = self._flex_app
        pipeline = flex_app.build_pipeline(on_progress=self.on_stage_progress)
        self._running = True
        try:
            result = await flex_app.wizard.confirm(pipeline)
        except PipelineStageError as e:
            self._error = format_error(e)
            self._show_error(self._error)
            return
        except Exception as e:
            logger.exception("Unexpected error while creating Flex Plan")
            self._error = format_error(e)
            self._show_error(self._error)
            return
        finally:
            self._running = False

        self._error = None
        self._succeeded = True
        key_name = result.api_key.name if result.api_key else "your API key"
        self._show_success(f"Flex Plan {result.plan.id} is active. Endpoint key: {key_name}.")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "back-btn":
            self.action_go_back()
        elif event.button.id == "retry-btn":
            self.action_retry()
        elif event.button.id == "approve-btn":
            self.action_confirm()
        elif event.button.id == "done-btn":
            self.action_finish()

    def action_confirm(self) -> None:
        """Start the transaction pipeline."""
        if self._running or self._succeeded:
            return
        self._show_loading()
        self.run_worker(self._run_pipeline(), exclusive=True)

    def action_retry(self) -> None:
        """Retry after a failure; stages already done are skipped."""
        if self._error is None:
            return
        self.action_confirm()

    def action_finish(self) -> None:
        """Exit the wizard once the plan exists."""
        if self._succeeded:
            self.app.exit(result=True)

    def action_go_back(self) -> None:
        """Return to the deposit step."""
        if self._running or self._succeeded:
            return
        self._flex_app.wizard.previous_step()
        self.app.pop_screen()
