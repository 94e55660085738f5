"""Chain JSON-RPC client utilities."""

import itertools

from typing import Any

import httpx
from pydantic import ValidationError

from tipjar.errors import RpcError
from tipjar.helpers.constants import DEFAULT_TIMEOUT
from tipjar.helpers.logging import get_logger
from tipjar.helpers.parsers import parse_hex_int, to_hex
from tipjar.helpers.rpc_models import JsonRpcRequest, JsonRpcResponse, NetworkInfo


logger = get_logger(__name__)


class RPCClient:
    """Stateless JSON-RPC client for the target chain endpoint.

    The client never retries. A failed call raises ``RpcError`` carrying the
    method name, callers decide whether an idempotent read is worth retrying.
    """

    def __init__(self, rpc_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout
        self._ids = itertools.count(1)

    def _build_payload(self, method: str, params: list[Any] | None) -> dict[str, Any]:
        request = JsonRpcRequest(method=method, params=params or [], id=next(self._ids))
        return request.model_dump()

    async def _post(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any] | list[dict[str, Any]],
        method: str,
        timeout: float | None,
    ) -> Any:
        try:
            response = await client.post(
                self.rpc_url, json=payload, timeout=timeout or self.timeout
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.warning("RPC %s transport error: %s", method, e)
            raise RpcError(method, e) from e
        except ValueError as e:
            logger.warning("RPC %s returned malformed JSON: %s", method, e)
            raise RpcError(method, e) from e

    @staticmethod
    def _unwrap(method: str, body: Any) -> Any:
        try:
            response = JsonRpcResponse.model_validate(body)
        except ValidationError as e:
            raise RpcError(method, e) from e

        if response.error is not None:
            raise RpcError(method, response.error.model_dump())

        return response.result

    @staticmethod
    def _quantity(method: str, result: Any) -> int:
        """Decode a 0x-prefixed quantity result, never defaulting a missing one."""
        if result is None:
            raise RpcError(method, "empty result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise RpcError(method, f"not a hex quantity: {result!r}")
        try:
            return parse_hex_int(result)
        except ValueError as e:
            raise RpcError(method, f"not a hex quantity: {result!r}") from e

    async def call(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: list[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Make a single JSON-RPC call.

        Any method is accepted, chain-specific reads are passed through as is.

        Args:
            client: HTTP client instance
            method: RPC method name (e.g., "eth_blockNumber")
            params: Method parameters list
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            RpcError: If the HTTP request fails or the response carries an error
        """
        payload = self._build_payload(method, params)
        logger.debug("RPC -> %s %s", method, payload["params"])
        body = await self._post(client, payload, method, timeout)
        return self._unwrap(method, body)

    async def batch_call(
        self,
        client: httpx.AsyncClient,
        requests: list[tuple[str, list[Any]]],
        *,
        timeout: float | None = None,
    ) -> list[Any]:
        """Make multiple JSON-RPC calls in a single batch request.

        Args:
            client: HTTP client instance
            requests: List of (method, params) tuples
            timeout: Optional timeout override

        Returns:
            List of results in the same order as requests

        Raises:
            RpcError: If the HTTP request fails or any entry carries an error
        """
        if not requests:
            return []

        payloads = [self._build_payload(method, params) for method, params in requests]
        methods_by_id = {p["id"]: p["method"] for p in payloads}
        label = ",".join(method for method, _ in requests)

        body = await self._post(client, payloads, label, timeout)
        if not isinstance(body, list):
            # Some endpoints answer a rejected batch with a single error object
            raise RpcError(label, body)

        results_by_id: dict[int, Any] = {}
        for entry in body:
            entry_id = entry.get("id") if isinstance(entry, dict) else None
            method = methods_by_id.get(entry_id, label)  # type: ignore[arg-type]
            results_by_id[entry_id] = self._unwrap(method, entry)  # type: ignore[index]

        missing = [methods_by_id[i] for i in methods_by_id if i not in results_by_id]
        if missing:
            raise RpcError(",".join(missing), "missing from batch response")

        return [results_by_id[p["id"]] for p in payloads]

    async def get_chain_id(self, client: httpx.AsyncClient) -> int:
        """Get the chain id served by the endpoint."""
        result = await self.call(client, "eth_chainId")
        return self._quantity("eth_chainId", result)

    async def get_block_number(self, client: httpx.AsyncClient) -> int:
        """Get the latest block number.

        Args:
            client: HTTP client instance

        Returns:
            Latest block number
        """
        result = await self.call(client, "eth_blockNumber")
        return self._quantity("eth_blockNumber", result)

    async def get_gas_price(self, client: httpx.AsyncClient) -> int:
        """Get the current gas price in base units."""
        result = await self.call(client, "eth_gasPrice")
        return self._quantity("eth_gasPrice", result)

    async def get_balance(
        self,
        client: httpx.AsyncClient,
        address: str,
        block_number: int | str = "latest",
    ) -> int:
        """Get native balance for an address at a specific block.

        Args:
            client: HTTP client instance
            address: Account address
            block_number: Block number (int) or a block tag such as "latest"

        Returns:
            Balance in base units
        """
        block_param = (
            to_hex(block_number) if isinstance(block_number, int) else block_number
        )
        result = await self.call(client, "eth_getBalance", [address, block_param])
        return self._quantity("eth_getBalance", result)

    async def get_transaction_count(
        self,
        client: httpx.AsyncClient,
        address: str,
        block_number: int | str = "latest",
    ) -> int:
        """Get the nonce (number of sent transactions) of an address."""
        block_param = (
            to_hex(block_number) if isinstance(block_number, int) else block_number
        )
        result = await self.call(
            client, "eth_getTransactionCount", [address, block_param]
        )
        return self._quantity("eth_getTransactionCount", result)

    async def estimate_gas(
        self, client: httpx.AsyncClient, transaction: dict[str, str]
    ) -> int:
        """Estimate the gas limit for a transaction shape.

        Args:
            client: HTTP client instance
            transaction: Call object with hex-encoded quantities
                (``from``, ``to``, ``value``)

        Returns:
            Estimated gas limit
        """
        result = await self.call(client, "eth_estimateGas", [transaction])
        return self._quantity("eth_estimateGas", result)

    async def get_transaction(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> dict[str, Any] | None:
        """Look up a transaction by hash, None if the node does not know it."""
        return await self.call(client, "eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> dict[str, Any] | None:
        """Look up a transaction receipt, None while the transaction is unmined."""
        return await self.call(client, "eth_getTransactionReceipt", [tx_hash])

    async def get_network_info(self, client: httpx.AsyncClient) -> NetworkInfo:
        """Fetch chain id, latest block and gas price in one batch request.

        Example:
            ```python
            rpc = RPCClient(rpc_url)
            async with create_http_client() as client:
                info = await rpc.get_network_info(client)
                # NetworkInfo(chain_id="0x1f93", block_number=..., gas_price=...)
            ```
        """
        chain_id, block_number, gas_price = await self.batch_call(
            client,
            [("eth_chainId", []), ("eth_blockNumber", []), ("eth_gasPrice", [])],
        )
        return NetworkInfo(
            chain_id=to_hex(self._quantity("eth_chainId", chain_id)),
            block_number=self._quantity("eth_blockNumber", block_number),
            gas_price=self._quantity("eth_gasPrice", gas_price),
        )


__all__ = ["RPCClient"]
