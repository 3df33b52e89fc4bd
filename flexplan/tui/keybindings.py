"""Shared keybinding contract for wizard screens."""

from __future__ import annotations

from typing import TypeAlias

Binding: TypeAlias = tuple[str, str, str]

QUIT_Q_BINDING: Binding = ("q", "quit", "Quit")
BACK_ESCAPE_BINDING: Binding = ("escape", "go_back", "Back")
BACK_CTRL_B_BINDING: Binding = ("ctrl+b", "go_back", "Back")
NAV_DOWN_J_BINDING: Binding = ("j", "cursor_down", "Down")
NAV_UP_K_BINDING: Binding = ("k", "cursor_up", "Up")
NEXT_ENTER_BINDING: Binding = ("enter", "next", "Next")
NEXT_N_BINDING: Binding = ("n", "next", "Next")
SUBMIT_ENTER_BINDING: Binding = ("enter", "submit", "Deposit")
SKIP_S_BINDING: Binding = ("s", "skip", "Skip deposit")
CONFIRM_ENTER_BINDING: Binding = ("enter", "confirm", "Approve")
RETRY_R_BINDING: Binding = ("r", "retry", "Retry")
FINISH_D_BINDING: Binding = ("d", "finish", "Done")


def compose_bindings(*bindings: Binding) -> list[Binding]:
    """Return binding tuples in order."""
    return list(bindings)
