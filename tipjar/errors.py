"""Exception hierarchy for the tip pipeline.

Every failure in the core is raised as a subclass of ``TipJarError`` and
propagates untouched to the caller. Nothing here is retried automatically.
"""

from typing import Any


class TipJarError(Exception):
    """Base class for all tip pipeline errors."""


# Provider side


class ProviderRpcError(Exception):
    """Error raised by an injected wallet provider (EIP-1193 shape).

    This is what providers raise, the bridge translates it into a
    ``ProviderError`` subclass before it leaves the wallet layer.
    """

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class ProviderError(TipJarError):
    """Failure reported by, or about, the wallet provider."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class ProviderUnavailable(ProviderError):
    """No wallet provider is present in the environment."""

    def __init__(self, message: str = "Wallet provider is not installed") -> None:
        super().__init__(message)


NotInstalled = ProviderUnavailable


class UserRejected(ProviderError):
    """The user dismissed a wallet prompt."""


class NoAccounts(ProviderError):
    """The provider returned an empty account list."""

    def __init__(self, message: str = "No accounts found") -> None:
        super().__init__(message)


class ChainSwitchFailed(ProviderError):
    """wallet_switchEthereumChain failed for a reason other than an unknown chain."""


class ChainAddFailed(ProviderError):
    """wallet_addEthereumChain failed."""


# Input validation


class InvalidInput(TipJarError):
    """User input rejected before any network call."""


class InvalidAmount(InvalidInput):
    """Amount is empty, not a decimal number, not positive, or too precise."""


class InvalidRecipient(InvalidInput):
    """Recipient is not a well-formed account address."""


class InsufficientBalance(TipJarError):
    """Requested amount exceeds the balance known to the session."""

    def __init__(self, requested_wei: int, available_wei: int) -> None:
        super().__init__(
            f"Insufficient balance: requested {requested_wei} wei, "
            f"available {available_wei} wei"
        )
        self.requested_wei = requested_wei
        self.available_wei = available_wei


class WalletNotConnected(TipJarError):
    """The session has no connected account."""


class WrongNetwork(TipJarError):
    """The wallet is on a different chain than the configured target."""

    def __init__(self, expected: str, actual: str | None) -> None:
        super().__init__(
            f"Wrong network: expected chain {expected}, wallet is on {actual}"
        )
        self.expected = expected
        self.actual = actual


class SendInProgress(TipJarError):
    """A send attempt is already running on this orchestrator."""


# Transport and chain


class RpcError(TipJarError):
    """A JSON-RPC call failed at the transport or protocol level."""

    def __init__(self, method: str, cause: Any) -> None:
        super().__init__(f"RPC {method} failed: {cause}")
        self.method = method
        self.cause = cause


class EstimationFailed(TipJarError):
    """Gas price or gas limit could not be obtained."""

    def __init__(self, method: str, cause: Any) -> None:
        super().__init__(f"Gas estimation failed in {method}: {cause}")
        self.method = method
        self.cause = cause


class SubmissionFailed(TipJarError):
    """The provider did not accept the transaction."""

    def __init__(self, cause: ProviderError) -> None:
        super().__init__(f"Transaction submission failed: {cause}")
        self.method = "eth_sendTransaction"
        self.cause = cause

    @property
    def user_rejected(self) -> bool:
        """Whether the user declined the signing prompt."""
        return isinstance(self.cause, UserRejected)


# Off-chain store


class StoreError(TipJarError):
    """The tip store API returned an error or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreReconciliationFailed(TipJarError):
    """The transfer was broadcast but recording it in the store failed.

    The transaction must not be resent; callers surface this as a warning.
    """

    def __init__(self, tx_hash: str, cause: Exception) -> None:
        super().__init__(
            f"Transfer {tx_hash} likely succeeded, recording failed: {cause}"
        )
        self.tx_hash = tx_hash
        self.cause = cause


__all__ = [
    "ChainAddFailed",
    "ChainSwitchFailed",
    "EstimationFailed",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidInput",
    "InvalidRecipient",
    "NoAccounts",
    "NotInstalled",
    "ProviderError",
    "ProviderRpcError",
    "ProviderUnavailable",
    "RpcError",
    "SendInProgress",
    "StoreError",
    "StoreReconciliationFailed",
    "SubmissionFailed",
    "TipJarError",
    "UserRejected",
    "WalletNotConnected",
    "WrongNetwork",
]
