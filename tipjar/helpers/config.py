"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv

from tipjar.helpers.constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_CHAIN_NAME,
    DEFAULT_CURRENCY_NAME,
    DEFAULT_CURRENCY_SYMBOL,
    DEFAULT_EXPLORER_URL,
    DEFAULT_ICON_URL,
    DEFAULT_RPC_URL,
    DEFAULT_STORE_URL,
    NATIVE_DECIMALS,
)
from tipjar.wallet.models import ChainConfig, NativeCurrency


# Load environment variables from .env file
load_dotenv()


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from tipjar.helpers.config import get_required_env

        api_url = get_required_env("TIPJAR_API_URL")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable.

    Raises:
        ValueError: If the variable is set but is not an integer
    """
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value, 0)
    except ValueError as e:
        msg = f"{key} must be an integer, got {value!r}"
        raise ValueError(msg) from e


def get_list_env(key: str, default: list[str]) -> list[str]:
    """Get a comma separated list environment variable."""
    value = os.getenv(key)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def get_rpc_url(rpc_url: str | None = None) -> str:
    """Get the chain JSON-RPC URL from parameter, environment or default.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        JSON-RPC endpoint URL

    Example:
        ```python
        from tipjar.helpers.config import get_rpc_url

        # TIPJAR_RPC_URL, or the public testnet endpoint
        rpc_url = get_rpc_url()

        # Or provide explicitly
        rpc_url = get_rpc_url("http://127.0.0.1:8545")
        ```
    """
    if rpc_url:
        return rpc_url
    return os.getenv("TIPJAR_RPC_URL") or DEFAULT_RPC_URL


def get_store_url(store_url: str | None = None) -> str:
    """Get the tip store API base URL from parameter, environment or default."""
    if store_url:
        return store_url.rstrip("/")
    return (os.getenv("TIPJAR_API_URL") or DEFAULT_STORE_URL).rstrip("/")


def load_chain_config() -> ChainConfig:
    """Build the target chain configuration from the environment.

    Returns:
        Frozen chain configuration shared by the session controller, the
        orchestrator's network check and the add-chain fallback

    Raises:
        ValueError: If a numeric variable is malformed or the result is invalid
    """
    rpc_url = get_rpc_url()
    return ChainConfig(
        chain_id=get_int_env("TIPJAR_CHAIN_ID", DEFAULT_CHAIN_ID),
        chain_name=get_optional_env("TIPJAR_CHAIN_NAME") or DEFAULT_CHAIN_NAME,
        currency=NativeCurrency(
            name=get_optional_env("TIPJAR_CURRENCY_NAME") or DEFAULT_CURRENCY_NAME,
            symbol=get_optional_env("TIPJAR_CURRENCY_SYMBOL")
            or DEFAULT_CURRENCY_SYMBOL,
            decimals=get_int_env("TIPJAR_CURRENCY_DECIMALS", NATIVE_DECIMALS),
        ),
        rpc_urls=[rpc_url],
        block_explorer_urls=get_list_env(
            "TIPJAR_EXPLORER_URLS", [DEFAULT_EXPLORER_URL]
        ),
        icon_urls=get_list_env("TIPJAR_ICON_URLS", [DEFAULT_ICON_URL]),
    )


__all__ = [
    "get_int_env",
    "get_list_env",
    "get_optional_env",
    "get_required_env",
    "get_rpc_url",
    "get_store_url",
    "load_chain_config",
]
