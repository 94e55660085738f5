"""Wallet session lifecycle.

``SessionController`` owns one ``WalletSession``. Only three paths write to
it: ``connect``/``restore``, the accounts-changed handler and the
chain-changed handler. The owner creates the controller when the UI surface
mounts and leaves ``watch()`` when it unmounts.
"""

import asyncio
from contextlib import contextmanager

from typing import TYPE_CHECKING, Any

from tipjar.helpers.logging import get_logger
from tipjar.helpers.parsers import format_address, normalize_chain_id
from tipjar.wallet.models import ProviderEvent, WalletSession


if TYPE_CHECKING:
    from collections.abc import Coroutine, Iterator

    import httpx

    from tipjar.helpers.rpc import RPCClient
    from tipjar.wallet.models import ChainConfig
    from tipjar.wallet.provider import ProviderBridge


logger = get_logger(__name__)


class SessionController:
    """Builds and maintains the live wallet session."""

    def __init__(
        self,
        bridge: "ProviderBridge",
        rpc_client: "RPCClient",
        http_client: "httpx.AsyncClient",
        chain: "ChainConfig",
    ) -> None:
        self.bridge = bridge
        self.rpc_client = rpc_client
        self.http_client = http_client
        self.chain = chain
        self.session = WalletSession.disconnected()
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def is_correct_network(self) -> bool:
        return self.session.connected and self.chain.matches(self.session.chain_id)

    async def _populate(
        self, address: str, *, only_if_current: bool = False
    ) -> WalletSession:
        chain_id = await self.bridge.current_chain_id()
        balance_wei = await self.rpc_client.get_balance(self.http_client, address)
        if only_if_current and self.session.address != address:
            # Superseded by a later accountsChanged event
            return self.session
        self.session.connected = True
        self.session.address = address
        self.session.chain_id = chain_id
        self.session.balance_wei = balance_wei
        logger.info(
            "Wallet %s connected on chain %s",
            format_address(address),
            chain_id,
        )
        return self.session

    async def connect(self) -> WalletSession:
        """Prompt for account access and build a fresh session.

        Raises:
            ProviderUnavailable: If no wallet is installed
            UserRejected: If the user dismissed the prompt
            NoAccounts: If the wallet returned no accounts
            RpcError: If the balance could not be read
        """
        accounts = await self.bridge.request_accounts()
        return await self._populate(accounts[0])

    async def restore(self) -> WalletSession:
        """Pick up an already authorized account without prompting.

        Leaves the session disconnected when no provider or account exists.
        """
        if not self.bridge.is_available():
            return self.session
        accounts = await self.bridge.accounts()
        if not accounts:
            return self.session
        return await self._populate(accounts[0])

    async def refresh_balance(self) -> WalletSession:
        """Re-read the balance of the connected account."""
        address = self.session.address
        if not self.session.connected or address is None:
            return self.session
        balance_wei = await self.rpc_client.get_balance(self.http_client, address)
        # The account may have changed while the read was in flight
        if self.session.address == address:
            self.session.balance_wei = balance_wei
        return self.session

    async def switch_network(self) -> bool:
        """Explicitly move the wallet to the configured chain.

        Returns:
            Whether the wallet reports the configured chain afterwards

        Raises:
            ProviderError: If the switch or the add-chain fallback failed
        """
        outcome = await self.bridge.ensure_chain(
            self.chain.chain_id_hex, self.chain.add_params()
        )
        logger.debug("ensure_chain outcome: %s", outcome)
        chain_id = await self.bridge.current_chain_id()
        if self.session.connected:
            self.session.chain_id = chain_id
        return self.chain.matches(chain_id)

    def handle_accounts_changed(self, accounts: list[str]) -> None:
        """Provider callback for accountsChanged.

        An empty list tears the session down before anything else runs.
        """
        if not accounts:
            logger.info("Wallet disconnected")
            self.session.reset()
            return

        address = accounts[0]
        if self.session.address == address and self.session.connected:
            return
        self.session.connected = True
        self.session.address = address
        self.session.balance_wei = 0
        self._spawn(self._populate(address, only_if_current=True))

    def handle_chain_changed(self, chain_id: str | int) -> None:
        """Provider callback for chainChanged."""
        self.session.chain_id = normalize_chain_id(chain_id)
        if self.session.connected:
            self._spawn(self.refresh_balance())

    def _spawn(self, coro: "Coroutine[Any, Any, object]") -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop, the next explicit refresh picks the balance up
            coro.close()
            return
        task = loop.create_task(self._run_refresh(coro))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _run_refresh(coro: "Coroutine[Any, Any, object]") -> None:
        try:
            await coro
        except Exception as e:
            logger.warning("Balance refresh after provider event failed: %s", e)

    async def drain(self) -> None:
        """Wait for balance refreshes started by provider events."""
        if self._pending:
            await asyncio.gather(*self._pending)

    @contextmanager
    def watch(self) -> "Iterator[SessionController]":
        """Subscribe to provider events for the duration of the block.

        Re-entering replaces the listeners instead of stacking them, and
        leaving always removes them.
        """
        with self.bridge.subscriptions():
            self.bridge.subscribe(
                ProviderEvent.ACCOUNTS_CHANGED, self.handle_accounts_changed
            )
            self.bridge.subscribe(
                ProviderEvent.CHAIN_CHANGED, self.handle_chain_changed
            )
            yield self


__all__ = ["SessionController"]
