"""Common configuration constants used across the application."""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

STORE_TIMEOUT = 10.0
"""Timeout for calls to the tip store API in seconds"""

# Retry Configuration (read-only callers only, submissions are never retried)
MAX_RETRIES = 3
"""Default maximum number of retry attempts"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 10.0
"""Maximum delay between retries in seconds"""

# Target Chain Defaults
DEFAULT_CHAIN_ID = 8083
"""Shardeum testnet chain id (0x1f93)"""

DEFAULT_CHAIN_NAME = "Shardeum Testnet"
"""Human-readable name sent with wallet_addEthereumChain"""

DEFAULT_RPC_URL = "https://api-testnet.shardeum.org"
"""Public JSON-RPC endpoint of the target chain"""

DEFAULT_EXPLORER_URL = "https://explorer-testnet.shardeum.org"
"""Block explorer of the target chain"""

DEFAULT_ICON_URL = "https://shardeum.org/favicon.ico"
"""Chain icon offered to the wallet"""

DEFAULT_CURRENCY_NAME = "Shardeum"
"""Native currency name"""

DEFAULT_CURRENCY_SYMBOL = "SHM"
"""Native currency ticker"""

NATIVE_DECIMALS = 18
"""Decimals of the native token (base units per token = 10**18)"""

DEFAULT_STORE_URL = "http://localhost:5000/api"
"""Base URL of the tip store API"""

# EIP-1193 Provider Error Codes
USER_REJECTED_CODE = 4001
"""User rejected the request"""

UNRECOGNIZED_CHAIN_CODE = 4902
"""Wallet does not know the requested chain"""

# Address Format
ADDRESS_HEX_LENGTH = 40
"""Number of hex characters in an account address (20 bytes)"""


__all__ = [
    "ADDRESS_HEX_LENGTH",
    "DEFAULT_CHAIN_ID",
    "DEFAULT_CHAIN_NAME",
    "DEFAULT_CURRENCY_NAME",
    "DEFAULT_CURRENCY_SYMBOL",
    "DEFAULT_EXPLORER_URL",
    "DEFAULT_ICON_URL",
    "DEFAULT_RPC_URL",
    "DEFAULT_STORE_URL",
    "DEFAULT_TIMEOUT",
    "MAX_RETRIES",
    "NATIVE_DECIMALS",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "STORE_TIMEOUT",
    "UNRECOGNIZED_CHAIN_CODE",
    "USER_REJECTED_CODE",
]
