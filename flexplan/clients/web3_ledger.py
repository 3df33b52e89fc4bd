"""Ledger client backed by web3 (EVM JSON-RPC)."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from .constants import BILLING_ABI, DEFAULT_GAS_LIMIT, ERC20_ABI
from .ledger import LedgerClient, LedgerError, TxHandle

if TYPE_CHECKING:
    from flexplan.config import Settings

logger = logging.getLogger(__name__)

_R = TypeVar("_R")

# RPC request timeout; receipt waits use web3's own default
RPC_TIMEOUT = 30

# Failures of the node or of the HTTP transport underneath it
_RPC_ERRORS = (Web3Exception, ValueError, requests.RequestException, OSError)


def _load_abi(path: Optional[Path], default: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if path is None:
        return default
    with Path(path).expanduser().open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    # Accept both a bare ABI list and a build artifact with an "abi" key
    if isinstance(data, dict):
        return data["abi"]
    return data


class Web3TxHandle(TxHandle):
    """Submitted transaction tracked through web3."""

    def __init__(self, web3: Web3, tx_hash: str) -> None:
        self._web3 = web3
        self._tx_hash = tx_hash

    @property
    def tx_hash(self) -> str:
        """Return the transaction hash."""
        return self._tx_hash

    async def wait(self) -> dict[str, Any]:
        """Wait for the receipt; raise LedgerError if the transaction reverted."""
        try:
            receipt = await asyncio.to_thread(
                self._web3.eth.wait_for_transaction_receipt, self._tx_hash
            )
        except _RPC_ERRORS as e:
            raise LedgerError(f"Transaction {self._tx_hash} not confirmed: {e}") from e

        payload = dict(receipt)
        if payload.get("status", 1) == 0:
            raise LedgerError(f"Transaction {self._tx_hash} reverted")
        logger.debug("Transaction confirmed: %s", self._tx_hash)
        return payload


class Web3LedgerClient(LedgerClient):
    """Ledger client for an ERC-20 token and the billing (consumer host) contract.

    Web3's HTTP provider is synchronous; every call runs in a worker thread so
    the TUI event loop is never blocked.
    """

    def __init__(
        self,
        web3: Web3,
        account: str,
        token_address: str,
        billing_address: str,
        private_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        token_abi: Optional[list[dict[str, Any]]] = None,
        billing_abi: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        """Initialize the ledger client.

        Args:
            web3: Connected Web3 instance.
            account: Wallet address used as sender and balance owner.
            token_address: ERC-20 token contract address.
            billing_address: Billing contract address (allowance spender).
            private_key: Optional key for local signing. Without it,
                transactions go through the node-managed account.
            chain_id: Optional chain id added to built transactions.
            token_abi: Token ABI override.
            billing_abi: Billing contract ABI override.
        """
        self._web3 = web3
        self._account = Web3.to_checksum_address(account)
        self._billing_address = Web3.to_checksum_address(billing_address)
        self._private_key = private_key
        self._chain_id = chain_id
        self._token = web3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=token_abi or ERC20_ABI
        )
        self._billing = web3.eth.contract(
            address=self._billing_address, abi=billing_abi or BILLING_ABI
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Web3LedgerClient":
        """Build a client from application settings.

        Raises:
            ValueError: If the account or contract addresses are not configured.
        """
        missing = [
            name
            for name in ("account_address", "token_address", "billing_contract_address")
            if not getattr(settings, name)
        ]
        if missing:
            raise ValueError(f"Missing ledger settings: {', '.join(missing)}")

        web3 = Web3(
            Web3.HTTPProvider(settings.rpc_url, request_kwargs={"timeout": RPC_TIMEOUT})
        )
        logger.debug("Ledger client initialized for %s", settings.rpc_url)
        return cls(
            web3=web3,
            account=settings.account_address,  # type: ignore[arg-type]
            token_address=settings.token_address,  # type: ignore[arg-type]
            billing_address=settings.billing_contract_address,  # type: ignore[arg-type]
            private_key=(
                settings.private_key.get_secret_value() if settings.private_key else None
            ),
            chain_id=settings.chain_id,
            token_abi=_load_abi(settings.token_abi_path, ERC20_ABI),
            billing_abi=_load_abi(settings.billing_contract_abi_path, BILLING_ABI),
        )

    @property
    def account(self) -> str:
        """Return the sender address."""
        return self._account

    @property
    def billing_address(self) -> str:
        """Return the billing contract address."""
        return self._billing_address

    async def _run(self, func: Callable[..., _R], *args: Any) -> _R:
        """Run a blocking web3 call in a thread, mapping web3 errors to LedgerError."""
        try:
            return await asyncio.to_thread(func, *args)
        except _RPC_ERRORS as e:
            raise LedgerError(str(e)) from e

    def _build_tx(self, function: Any) -> dict[str, Any]:
        tx = function.build_transaction(
            {
                "from": self._account,
                "nonce": self._web3.eth.get_transaction_count(self._account),
            }
        )
        if self._chain_id:
            tx["chainId"] = self._chain_id
        tx.setdefault("gas", DEFAULT_GAS_LIMIT)
        return tx

    def _send_sync(self, function: Any) -> str:
        tx = self._build_tx(function)
        if self._private_key:
            signed = self._web3.eth.account.sign_transaction(tx, self._private_key)
            raw_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction)
        else:
            raw_hash = self._web3.eth.send_transaction(tx)
        return Web3.to_hex(raw_hash)

    async def _send(self, function: Any, label: str) -> TxHandle:
        tx_hash = await self._run(self._send_sync, function)
        logger.info("Submitted %s transaction: %s", label, tx_hash)
        return Web3TxHandle(self._web3, tx_hash)

    async def allowance(self, spender: str, owner: Optional[str] = None) -> int:
        """Return the allowance granted by `owner` (default: the account) to `spender`."""
        call = self._token.functions.allowance(
            Web3.to_checksum_address(owner) if owner else self._account,
            Web3.to_checksum_address(spender),
        ).call
        return int(await self._run(call))

    async def approve(self, spender: str, amount: int) -> TxHandle:
        """Submit an ERC-20 approval."""
        function = self._token.functions.approve(Web3.to_checksum_address(spender), amount)
        return await self._send(function, "approve")

    async def deposit(self, amount: int, flag: bool) -> TxHandle:
        """Submit a deposit into the billing contract."""
        function = self._billing.functions.deposit(amount, flag)
        return await self._send(function, "deposit")

    async def balance_of(self, address: str) -> int:
        """Return the wallet token balance of `address`."""
        call = self._token.functions.balanceOf(Web3.to_checksum_address(address)).call
        return int(await self._run(call))

    async def billing_balance(self, address: str) -> int:
        """Return the billing account balance of `address`."""
        call = self._billing.functions.consumers(Web3.to_checksum_address(address)).call
        result = await self._run(call)
        # Full consumer structs decode as tuples with balance first
        if isinstance(result, (list, tuple)):
            result = result[0]
        return int(result)
