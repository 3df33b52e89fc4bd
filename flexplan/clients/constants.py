"""Constants for ledger and billing service clients."""

# =============================================================================
# HTTP Client Settings
# =============================================================================

# Default timeout for billing service requests (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0

# Connection pool size; the pipeline issues requests sequentially
HTTP_MAX_CONNECTIONS = 10

# Keep-alive timeout for connection reuse (seconds)
HTTP_KEEPALIVE_TIMEOUT = 30.0

# =============================================================================
# Billing Service Routes
# =============================================================================

PROJECT_OFFERS_PATH = "/projects/{project_id}"
API_KEYS_PATH = "/users/apikeys"
API_KEY_CREATE_PATH = "/users/apikeys/new"
HOSTING_PLANS_PATH = "/users/hosting-plan"
HOSTING_PLAN_PATH = "/users/hosting-plan/{plan_id}"

# =============================================================================
# Ledger Settings
# =============================================================================

# Gas ceiling for approve/deposit when the node cannot estimate
DEFAULT_GAS_LIMIT = 500_000

# Minimal ERC-20 surface used for allowance, approval and wallet balance
ERC20_ABI = [
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Billing (consumer host) contract surface: deposit and per-consumer balance
BILLING_ABI = [
    {
        "type": "function",
        "name": "deposit",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "isApprove", "type": "bool"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "consumers",
        "stateMutability": "view",
        "inputs": [{"name": "consumer", "type": "address"}],
        "outputs": [{"name": "balance", "type": "uint256"}],
    },
]
