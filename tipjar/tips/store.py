"""Client for the tip store HTTP API (creators, tips, history)."""

from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from tipjar.errors import StoreError
from tipjar.helpers.constants import STORE_TIMEOUT
from tipjar.helpers.logging import get_logger
from tipjar.tips.models import Creator, NewCreator, TipRecord, TipSubmission


logger = get_logger(__name__)

_creator_list = TypeAdapter(list[Creator])
_record_list = TypeAdapter(list[TipRecord])


class TipStoreClient:
    """Thin request/response wrapper around the store API.

    Aggregates (``totalTips``, ``tipCount``) are maintained by the store when a
    tip is posted, the client never computes them.
    """

    def __init__(self, base_url: str, timeout: float = STORE_TIMEOUT) -> None:
        """Initialize store client.

        Args:
            base_url: API base URL, e.g. "http://localhost:5000/api"
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If base_url is empty or None
        """
        if not base_url:
            msg = "Store URL cannot be empty"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Store %s %s", method, url)
        try:
            response = await client.request(
                method, url, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.warning("Store %s %s failed: %s", method, path, message)
            raise StoreError(
                f"API Error: {message}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Store %s %s unreachable: %s", method, path, e)
            msg = "Network Error: Unable to connect to server"
            raise StoreError(msg) from e
        except ValueError as e:
            msg = f"API Error: malformed response from {path}"
            raise StoreError(msg) from e

    @staticmethod
    def _parse(adapter: TypeAdapter[Any] | type[BaseModel], data: Any, path: str) -> Any:
        try:
            if isinstance(adapter, TypeAdapter):
                return adapter.validate_python(data)
            return adapter.model_validate(data)
        except ValidationError as e:
            msg = f"API Error: unexpected payload from {path}: {e.error_count()} errors"
            raise StoreError(msg) from e

    async def health(self, client: httpx.AsyncClient) -> dict[str, Any]:
        """Return the store's health payload ({"status": "OK", ...})."""
        return await self._request(client, "GET", "/health")

    async def get_creators(self, client: httpx.AsyncClient) -> list[Creator]:
        data = await self._request(client, "GET", "/creators")
        return self._parse(_creator_list, data, "/creators")

    async def get_creator(self, client: httpx.AsyncClient, creator_id: str) -> Creator:
        """Fetch one creator.

        Raises:
            StoreError: With status_code 404 if the creator does not exist
        """
        path = f"/creators/{creator_id}"
        data = await self._request(client, "GET", path)
        return self._parse(Creator, data, path)

    async def create_creator(
        self, client: httpx.AsyncClient, creator: NewCreator
    ) -> Creator:
        data = await self._request(
            client, "POST", "/creators", creator.model_dump()
        )
        return self._parse(Creator, data, "/creators")

    async def record_tip(
        self, client: httpx.AsyncClient, tip: TipSubmission
    ) -> TipRecord:
        """Post a tip. The store also bumps the creator's aggregates."""
        data = await self._request(client, "POST", "/tips", tip.to_payload())
        return self._parse(TipRecord, data, "/tips")

    async def get_history(
        self, client: httpx.AsyncClient, address: str
    ) -> list[TipRecord]:
        """Tips sent or received by an address, newest first."""
        path = f"/history/{address}"
        data = await self._request(client, "GET", path)
        return self._parse(_record_list, data, path)

    async def get_transactions(self, client: httpx.AsyncClient) -> list[TipRecord]:
        data = await self._request(client, "GET", "/transactions")
        return self._parse(_record_list, data, "/transactions")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or str(response.status_code)
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or str(response.status_code)


__all__ = ["TipStoreClient"]
