"""Pytest configuration and shared fixtures for the tip pipeline tests."""

from collections import defaultdict
from unittest.mock import AsyncMock

import pytest

from typing import TYPE_CHECKING, Any

import httpx

from tipjar.helpers.rpc import RPCClient
from tipjar.wallet.models import ChainConfig, NativeCurrency, WalletSession
from tipjar.wallet.provider import ProviderBridge


if TYPE_CHECKING:
    from collections.abc import Callable


SENDER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x26d6a3805cbae5d5a510443a15129bec456cacff"
TX_HASH = "0x" + "ab" * 32
TARGET_CHAIN_HEX = "0x1f93"
ONE_TOKEN = 10**18


class FakeProvider:
    """Scriptable stand-in for an injected wallet provider.

    ``responses`` maps a method to a value, an exception instance to raise,
    or a callable receiving the params.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = {
            "eth_requestAccounts": [SENDER],
            "eth_accounts": [SENDER],
            "eth_chainId": TARGET_CHAIN_HEX,
            "eth_sendTransaction": TX_HASH,
            **(responses or {}),
        }
        self.calls: list[tuple[str, list[Any]]] = []
        self.listeners: defaultdict[str, list[Callable[..., Any]]] = defaultdict(list)

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        self.calls.append((method, params or []))
        response = self.responses.get(method)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params or [])
        return response

    def on(self, event: str, handler: "Callable[..., Any]") -> None:
        self.listeners[event].append(handler)

    def remove_listener(self, event: str, handler: "Callable[..., Any]") -> None:
        if handler in self.listeners[event]:
            self.listeners[event].remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self.listeners[event]):
            handler(*args)

    def count(self, method: str) -> int:
        return sum(1 for called, _ in self.calls if called == method)


@pytest.fixture
def chain() -> ChainConfig:
    """Target chain used across tests (Shardeum testnet, 8083)."""
    return ChainConfig(
        chain_id=8083,
        chain_name="Shardeum Testnet",
        currency=NativeCurrency(name="Shardeum", symbol="SHM", decimals=18),
        rpc_urls=["https://api-testnet.shardeum.org"],
        block_explorer_urls=["https://explorer-testnet.shardeum.org"],
        icon_urls=["https://shardeum.org/favicon.ico"],
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_provider() -> "Callable[..., FakeProvider]":
    """Factory for providers with custom scripted responses."""
    return FakeProvider


@pytest.fixture
def bridge(fake_provider: FakeProvider) -> ProviderBridge:
    return ProviderBridge(fake_provider)


@pytest.fixture
def mock_rpc() -> AsyncMock:
    """RPC client double returning a sane gas price, estimate and balance."""
    rpc = AsyncMock(spec=RPCClient)
    rpc.timeout = 30.0
    rpc.get_gas_price.return_value = 1_000_000_000
    rpc.estimate_gas.return_value = 21_000
    rpc.get_balance.return_value = 2 * ONE_TOKEN
    return rpc


@pytest.fixture
def mock_http_client() -> AsyncMock:
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def connected_session() -> WalletSession:
    """Session holding 2 tokens on the target chain."""
    return WalletSession(
        connected=True,
        address=SENDER,
        chain_id=TARGET_CHAIN_HEX,
        balance_wei=2 * ONE_TOKEN,
    )
