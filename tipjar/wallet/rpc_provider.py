"""Wallet provider backed by a JSON-RPC node that manages its own accounts.

Useful outside a browser, against development nodes with unlocked accounts.
Keys stay inside the node, this process only forwards requests.
"""

from collections import defaultdict

from typing import TYPE_CHECKING, Any

from tipjar.errors import ProviderRpcError, RpcError
from tipjar.helpers.constants import UNRECOGNIZED_CHAIN_CODE
from tipjar.helpers.http import create_http_client
from tipjar.helpers.logging import get_logger
from tipjar.helpers.parsers import parse_hex_int


if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from tipjar.helpers.rpc import RPCClient


logger = get_logger(__name__)

# EIP-1193 "unsupported method" and JSON-RPC "internal error"
UNSUPPORTED_METHOD_CODE = 4200
INTERNAL_ERROR_CODE = -32603


class JsonRpcProvider:
    """EIP-1193 style provider forwarding to a node over JSON-RPC."""

    def __init__(
        self,
        rpc_client: "RPCClient",
        http_client: "httpx.AsyncClient | None" = None,
    ) -> None:
        self.rpc_client = rpc_client
        self.http_client = http_client or create_http_client(
            timeout=rpc_client.timeout
        )
        self._owns_client = http_client is None
        self._listeners: defaultdict[str, list[Callable[..., Any]]] = defaultdict(list)

    async def __aenter__(self) -> "JsonRpcProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def _forward(self, method: str, params: list[Any]) -> Any:
        try:
            return await self.rpc_client.call(self.http_client, method, params)
        except RpcError as e:
            cause = e.cause
            if isinstance(cause, dict) and "code" in cause:
                raise ProviderRpcError(
                    cause["code"], cause.get("message", str(e)), cause.get("data")
                ) from e
            raise ProviderRpcError(INTERNAL_ERROR_CODE, str(e)) from e

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        params = params or []

        if method == "eth_requestAccounts":
            return await self._forward("eth_accounts", [])

        if method == "wallet_switchEthereumChain":
            wanted = params[0]["chainId"] if params else None
            current = await self._forward("eth_chainId", [])
            if wanted is None or parse_hex_int(wanted) != parse_hex_int(current):
                msg = f"Unrecognized chain ID {wanted}"
                raise ProviderRpcError(UNRECOGNIZED_CHAIN_CODE, msg)
            return None

        if method == "wallet_addEthereumChain":
            msg = "A JSON-RPC node cannot add chains"
            raise ProviderRpcError(UNSUPPORTED_METHOD_CODE, msg)

        return await self._forward(method, params)

    def on(self, event: str, handler: "Callable[..., Any]") -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: "Callable[..., Any]") -> None:
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def emit(self, event: str, *args: Any) -> None:
        """Deliver an event to every registered listener in order."""
        for handler in list(self._listeners[event]):
            handler(*args)


__all__ = ["JsonRpcProvider"]
