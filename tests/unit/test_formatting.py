from __future__ import annotations

from decimal import Decimal

import httpx

from flexplan.clients.ledger import LedgerError
from flexplan.core.pipeline import PipelineStageError
from flexplan.tui.formatting import format_amount, format_error, format_usd


def test_format_amount() -> None:
    assert format_amount(Decimal("1250"), "SQT") == "1,250.00 SQT"
    assert format_amount(Decimal("0.125"), "SQT", places=4) == "0.1250 SQT"
    assert format_amount(None, "SQT") == "0.00 SQT"


def test_format_usd() -> None:
    assert format_usd(Decimal("1.2500")) == "(~US$1.2500)"
    assert format_usd(None) == ""


def test_stage_errors_name_the_stage() -> None:
    assert format_error(PipelineStageError("deposit", "User denied signature")) == (
        "Deposit funds to billing account: transaction was rejected in your wallet."
    )
    assert "insufficient funds" in format_error(
        PipelineStageError("allowance", "insufficient funds for gas")
    )
    assert format_error(PipelineStageError("api_key", "Key limit reached")) == (
        "Create personal API key failed: Key limit reached"
    )


def test_transport_errors_get_guidance() -> None:
    assert format_error(LedgerError("nonce too low")) == "Ledger error: nonce too low"
    assert "timed out" in format_error(httpx.ReadTimeout("read timeout"))
    assert "Could not connect" in format_error(httpx.ConnectError("connection refused"))
    assert format_error(KeyError("x")) == "KeyError: 'x'"
