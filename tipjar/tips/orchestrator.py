"""Send-tip orchestration.

One call to ``TipOrchestrator.send_tip`` walks a single attempt through

    Idle -> Validating -> NetworkCheck -> Estimating -> Submitting
         -> Submitted | Failed

and submits at most once. Nothing is retried: a failed or abandoned attempt is
only ever repeated by calling ``send_tip`` again.
"""

from enum import StrEnum

from typing import TYPE_CHECKING

from tipjar.errors import (
    EstimationFailed,
    InsufficientBalance,
    InvalidAmount,
    InvalidRecipient,
    ProviderError,
    RpcError,
    SendInProgress,
    SubmissionFailed,
    WalletNotConnected,
    WrongNetwork,
)
from tipjar.helpers.logging import get_logger
from tipjar.helpers.parsers import (
    format_address,
    from_base_units,
    is_valid_address,
    to_base_units,
    to_hex,
)
from tipjar.wallet.models import TransactionRequest


if TYPE_CHECKING:
    import httpx

    from tipjar.helpers.rpc import RPCClient
    from tipjar.wallet.models import ChainConfig, WalletSession
    from tipjar.wallet.provider import ProviderBridge


logger = get_logger(__name__)


class SendState(StrEnum):
    """States of one send-tip attempt."""

    IDLE = "idle"
    VALIDATING = "validating"
    NETWORK_CHECK = "network_check"
    ESTIMATING = "estimating"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SendState.SUBMITTED, SendState.FAILED})


class SendAttempt:
    """Trace of one send-tip attempt."""

    def __init__(self, recipient: str, amount: str) -> None:
        self.recipient = recipient
        self.amount = amount
        self.states: list[SendState] = [SendState.IDLE]
        self.request: TransactionRequest | None = None
        self.tx_hash: str | None = None
        self.error: Exception | None = None

    @property
    def state(self) -> SendState:
        return self.states[-1]

    def advance(self, state: SendState) -> None:
        if self.state in TERMINAL_STATES:
            msg = f"Attempt already finished in state {self.state}"
            raise RuntimeError(msg)
        logger.debug("send-tip %s -> %s", self.state, state)
        self.states.append(state)

    def fail(self, error: Exception) -> Exception:
        self.error = error
        self.advance(SendState.FAILED)
        return error


class TipOrchestrator:
    """Validates, checks the network, estimates gas and submits a tip."""

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
        self.last_attempt: SendAttempt | None = None
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        """Whether an attempt is running, callers disable their send action."""
        return self._in_flight

    async def send_tip(
        self,
        session: "WalletSession",
        recipient: str,
        amount: str,
        *,
        gas_limit: int | None = None,
    ) -> str:
        """Send ``amount`` of the native token from the session account.

        Args:
            session: Current wallet session snapshot
            recipient: Recipient address
            amount: Decimal amount in display units, e.g. "0.5"
            gas_limit: Explicit gas limit, estimated when omitted

        Returns:
            Transaction hash of the broadcast

        Raises:
            SendInProgress: If another attempt is running on this orchestrator
            InvalidAmount: If the amount is malformed or not positive
            InsufficientBalance: If the amount exceeds the session balance
            InvalidRecipient: If the recipient is not a valid address
            WalletNotConnected: If the session has no account
            WrongNetwork: If the wallet is not on the configured chain
            EstimationFailed: If gas price or gas limit could not be obtained
            SubmissionFailed: If the provider did not accept the transaction
        """
        if self._in_flight:
            msg = "A tip is already being sent"
            raise SendInProgress(msg)

        attempt = SendAttempt(recipient, amount)
        self.last_attempt = attempt
        self._in_flight = True
        try:
            return await self._run(attempt, session, gas_limit)
        except Exception as e:
            if attempt.state not in TERMINAL_STATES:
                attempt.fail(e)
            logger.warning("send-tip failed in %s: %s", attempt.states[-2], e)
            raise
        finally:
            self._in_flight = False

    async def _run(
        self,
        attempt: SendAttempt,
        session: "WalletSession",
        gas_limit: int | None,
    ) -> str:
        attempt.advance(SendState.VALIDATING)
        from_address, value_wei = self._validate(session, attempt.recipient, attempt.amount)

        attempt.advance(SendState.NETWORK_CHECK)
        chain_id = await self.bridge.current_chain_id()
        if not self.chain.matches(chain_id):
            raise WrongNetwork(self.chain.chain_id_hex, chain_id)

        attempt.advance(SendState.ESTIMATING)
        gas_price, gas_limit = await self._estimate(
            from_address, attempt.recipient, value_wei, gas_limit
        )

        request = TransactionRequest(
            from_address=from_address,
            to=attempt.recipient,
            value_wei=value_wei,
            gas_price=gas_price,
            gas_limit=gas_limit,
        )
        attempt.request = request

        attempt.advance(SendState.SUBMITTING)
        logger.info(
            "Sending %s %s (%d base units) from %s to %s, gas %d @ %d",
            from_base_units(value_wei, self.chain.decimals),
            self.chain.currency.symbol,
            value_wei,
            format_address(from_address),
            format_address(attempt.recipient),
            gas_limit,
            gas_price,
        )
        try:
            tx_hash = await self.bridge.submit_transaction(request)
        except ProviderError as e:
            raise SubmissionFailed(e) from e

        attempt.tx_hash = tx_hash
        attempt.advance(SendState.SUBMITTED)
        logger.info("Transaction sent: %s", tx_hash)
        return tx_hash

    def _validate(
        self, session: "WalletSession", recipient: str, amount: str
    ) -> tuple[str, int]:
        if not session.connected or not is_valid_address(session.address):
            msg = "Connect a wallet before sending a tip"
            raise WalletNotConnected(msg)

        value_wei = to_base_units(amount, self.chain.decimals)
        if value_wei <= 0:
            msg = f"Tip amount must be positive, got {amount!r}"
            raise InvalidAmount(msg)

        if value_wei > session.balance_wei:
            raise InsufficientBalance(value_wei, session.balance_wei)

        if not is_valid_address(recipient):
            msg = f"Invalid recipient address: {recipient!r}"
            raise InvalidRecipient(msg)

        return session.address, value_wei  # type: ignore[return-value]

    async def _estimate(
        self,
        from_address: str,
        recipient: str,
        value_wei: int,
        gas_limit: int | None,
    ) -> tuple[int, int]:
        try:
            gas_price = await self.rpc_client.get_gas_price(self.http_client)
            if gas_limit is None:
                gas_limit = await self.rpc_client.estimate_gas(
                    self.http_client,
                    {"from": from_address, "to": recipient, "value": to_hex(value_wei)},
                )
        except RpcError as e:
            raise EstimationFailed(e.method, e.cause) from e

        if gas_limit <= 0:
            raise EstimationFailed("eth_estimateGas", f"unusable gas limit {gas_limit}")
        return gas_price, gas_limit


__all__ = [
    "SendAttempt",
    "SendState",
    "TERMINAL_STATES",
    "TipOrchestrator",
]
