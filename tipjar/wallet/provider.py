"""Provider bridge: the only code that talks to the injected wallet provider.

Everything else in the package depends on ``ProviderBridge``, never on the
provider object itself. Providers follow the EIP-1193 shape: an async
``request(method, params)`` plus ``on`` / ``remove_listener`` for events, and
they raise ``ProviderRpcError`` with a numeric code on failure.
"""

from contextlib import contextmanager

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tipjar.errors import (
    ChainAddFailed,
    ChainSwitchFailed,
    NoAccounts,
    ProviderError,
    ProviderRpcError,
    ProviderUnavailable,
    UserRejected,
)
from tipjar.helpers.constants import UNRECOGNIZED_CHAIN_CODE, USER_REJECTED_CODE
from tipjar.helpers.logging import get_logger
from tipjar.helpers.parsers import normalize_chain_id
from tipjar.wallet.models import ChainSwitchOutcome, ProviderEvent


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from tipjar.wallet.models import ChainAddParams, TransactionRequest


logger = get_logger(__name__)


@runtime_checkable
class WalletProvider(Protocol):
    """Structural type of an injected wallet provider."""

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        ...

    def on(self, event: str, handler: "Callable[..., Any]") -> None:
        ...

    def remove_listener(self, event: str, handler: "Callable[..., Any]") -> None:
        ...


def translate_provider_error(error: ProviderRpcError, context: str) -> ProviderError:
    """Map a raw provider error onto the package's provider errors."""
    if error.code == USER_REJECTED_CODE:
        return UserRejected(f"{context}: user rejected the request", code=error.code)
    return ProviderError(f"{context}: {error.message}", code=error.code)


class Subscription:
    """Handle for one registered provider listener."""

    def __init__(
        self,
        bridge: "ProviderBridge",
        event: ProviderEvent,
        listener: "Callable[..., Any]",
    ) -> None:
        self.bridge = bridge
        self.event = event
        self.listener = listener

    @property
    def active(self) -> bool:
        return self.bridge.listener_for(self.event) is self.listener

    def unsubscribe(self) -> None:
        """Remove this listener if it is still the active one for its event."""
        if self.active:
            self.bridge.unsubscribe(self.event)


class ProviderBridge:
    """Typed wrapper around an optional injected wallet provider.

    Example:
        ```python
        bridge = ProviderBridge(provider)
        accounts = await bridge.request_accounts()
        with bridge.subscriptions():
            bridge.subscribe(ProviderEvent.CHAIN_CHANGED, on_chain)
            ...
        # every listener is removed here, even on error
        ```
    """

    def __init__(self, provider: WalletProvider | None) -> None:
        self.provider = provider
        self._listeners: dict[ProviderEvent, Callable[..., Any]] = {}

    def is_available(self) -> bool:
        """True iff a provider is present."""
        return self.provider is not None

    def _require_provider(self) -> WalletProvider:
        if self.provider is None:
            raise ProviderUnavailable
        return self.provider

    async def _request(
        self, method: str, params: list[Any] | None = None
    ) -> Any:
        provider = self._require_provider()
        try:
            return await provider.request(method, params or [])
        except ProviderRpcError as e:
            raise translate_provider_error(e, method) from e

    async def request_accounts(self) -> list[str]:
        """Prompt the wallet for account access.

        Returns:
            Non-empty list of account addresses

        Raises:
            ProviderUnavailable: If no provider is present
            UserRejected: If the user dismissed the prompt
            NoAccounts: If the wallet returned no accounts
        """
        accounts = await self._request("eth_requestAccounts")
        if not accounts:
            raise NoAccounts
        return list(accounts)

    async def accounts(self) -> list[str]:
        """Accounts already authorized, without prompting (may be empty)."""
        return list(await self._request("eth_accounts") or [])

    async def current_chain_id(self) -> str:
        """Active chain id as lowercase 0x-prefixed hex."""
        chain_id = await self._request("eth_chainId")
        return normalize_chain_id(chain_id)

    async def ensure_chain(
        self, expected: str, add_params: "ChainAddParams"
    ) -> ChainSwitchOutcome:
        """Ask the wallet to switch to ``expected``, adding the chain if unknown.

        After an add the switch is not re-attempted, the caller must read
        ``current_chain_id`` again to learn where the wallet ended up.

        Args:
            expected: Target chain id as 0x-prefixed hex
            add_params: Parameters for the wallet_addEthereumChain fallback

        Returns:
            SWITCHED if the switch request succeeded, ADDED if the chain had
            to be added instead

        Raises:
            ProviderUnavailable: If no provider is present
            UserRejected: If the user declined the switch
            ChainSwitchFailed: For any other switch failure
            ChainAddFailed: If the add-chain fallback failed
        """
        provider = self._require_provider()
        try:
            await provider.request(
                "wallet_switchEthereumChain", [{"chainId": expected}]
            )
            logger.info("Wallet switched to chain %s", expected)
            return ChainSwitchOutcome.SWITCHED
        except ProviderRpcError as switch_error:
            if switch_error.code == USER_REJECTED_CODE:
                raise UserRejected(
                    "wallet_switchEthereumChain: user rejected the request",
                    code=switch_error.code,
                ) from switch_error
            if switch_error.code != UNRECOGNIZED_CHAIN_CODE:
                msg = f"Failed to switch to chain {expected}: {switch_error.message}"
                raise ChainSwitchFailed(msg, code=switch_error.code) from switch_error

        logger.info("Chain %s unknown to wallet, requesting add", expected)
        try:
            await provider.request(
                "wallet_addEthereumChain", [add_params.to_request_params()]
            )
        except ProviderRpcError as add_error:
            msg = f"Failed to add chain {expected}: {add_error.message}"
            raise ChainAddFailed(msg, code=add_error.code) from add_error
        return ChainSwitchOutcome.ADDED

    async def submit_transaction(self, request: "TransactionRequest") -> str:
        """Hand a transaction to the wallet for signing and broadcast.

        Returns:
            Transaction hash of the broadcast, not a proof of inclusion

        Raises:
            ProviderUnavailable: If no provider is present
            UserRejected: If the user declined to sign
            ProviderError: If the wallet failed or returned no hash
        """
        tx_hash = await self._request(
            "eth_sendTransaction", [request.to_provider_params()]
        )
        if not isinstance(tx_hash, str) or not tx_hash:
            msg = "eth_sendTransaction: provider returned no transaction hash"
            raise ProviderError(msg)
        return tx_hash

    def listener_for(self, event: ProviderEvent) -> "Callable[..., Any] | None":
        return self._listeners.get(event)

    def subscribe(
        self, event: ProviderEvent, handler: "Callable[..., Any]"
    ) -> Subscription:
        """Register ``handler`` for ``event``, replacing any previous handler.

        Raises:
            ProviderUnavailable: If no provider is present
        """
        provider = self._require_provider()
        self.unsubscribe(event)
        provider.on(event.value, handler)
        self._listeners[event] = handler
        return Subscription(self, event, handler)

    def unsubscribe(self, event: ProviderEvent) -> None:
        handler = self._listeners.pop(event, None)
        if handler is not None and self.provider is not None:
            self.provider.remove_listener(event.value, handler)

    def unsubscribe_all(self) -> None:
        """Remove every listener this bridge registered."""
        for event in list(self._listeners):
            self.unsubscribe(event)

    @contextmanager
    def subscriptions(self) -> "Iterator[ProviderBridge]":
        """Scope in which subscriptions are guaranteed to be released."""
        try:
            yield self
        finally:
            self.unsubscribe_all()


__all__ = [
    "ProviderBridge",
    "Subscription",
    "WalletProvider",
    "translate_provider_error",
]
