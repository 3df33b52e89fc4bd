"""Ledger and billing service clients.

Both collaborators sit behind small async interfaces so the transaction
pipeline can be driven by real backends or by in-memory fakes:

    - LedgerClient: token allowance/approval, billing deposits, balances
      (Web3LedgerClient talks to an EVM JSON-RPC endpoint)
    - BillingServiceClient: provider offers, API keys, hosting plans
      (HttpBillingClient talks to the billing service over httpx)
"""

from .billing import BillingServiceClient
from .http_billing import HttpBillingClient
from .ledger import LedgerClient, LedgerError, TxHandle
from .web3_ledger import Web3LedgerClient, Web3TxHandle

__all__ = [
    "BillingServiceClient",
    "HttpBillingClient",
    "LedgerClient",
    "LedgerError",
    "TxHandle",
    "Web3LedgerClient",
    "Web3TxHandle",
]
