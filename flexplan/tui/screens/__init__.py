"""Flex Plan wizard screens.

Screens are imported lazily to avoid circular imports.
Use:
    from flexplan.tui.screens.draft import DraftScreen
    from flexplan.tui.screens.deposit import DepositScreen
    from flexplan.tui.screens.confirm import ConfirmScreen
"""
