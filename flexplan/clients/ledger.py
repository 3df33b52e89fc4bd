"""Abstract base class for ledger (on-chain billing) clients."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class LedgerError(RuntimeError):
    """A ledger call or transaction failed (RPC error, rejection, revert)."""


class TxHandle(ABC):
    """A submitted transaction awaiting confirmation."""

    @property
    @abstractmethod
    def tx_hash(self) -> str:
        """Return the transaction hash as a 0x-prefixed hex string."""
        ...

    @abstractmethod
    async def wait(self) -> dict[str, Any]:
        """Wait for the confirmation receipt.

        Returns:
            The transaction receipt.

        Raises:
            LedgerError: If the transaction reverted or could not be confirmed.
        """
        ...


class LedgerClient(ABC):
    """Interface to the token and billing contracts for one wallet account.

    All amounts are 18-decimal fixed-point base-unit integers. Conversion to
    human-scale values happens in the caller, at this boundary only.
    """

    @property
    @abstractmethod
    def account(self) -> str:
        """Return the wallet address transactions are sent from."""
        ...

    @property
    @abstractmethod
    def billing_address(self) -> str:
        """Return the billing contract address (the allowance spender)."""
        ...

    @abstractmethod
    async def allowance(self, spender: str, owner: Optional[str] = None) -> int:
        """Return the token allowance `owner` (default: the account) granted to `spender`."""
        ...

    @abstractmethod
    async def approve(self, spender: str, amount: int) -> TxHandle:
        """Submit an approval letting `spender` pull up to `amount` tokens."""
        ...

    @abstractmethod
    async def deposit(self, amount: int, flag: bool) -> TxHandle:
        """Submit a deposit from the wallet into the billing ledger.

        Args:
            amount: Base-unit amount to move.
            flag: Billing contract deposit flag (approve the billing service
                to spend the deposited funds).
        """
        ...

    @abstractmethod
    async def balance_of(self, address: str) -> int:
        """Return the wallet token balance of `address`."""
        ...

    @abstractmethod
    async def billing_balance(self, address: str) -> int:
        """Return the billing account balance of `address`."""
        ...
