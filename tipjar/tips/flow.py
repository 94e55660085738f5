"""Send a tip and record it, keeping the two failure domains apart."""

from typing import TYPE_CHECKING

from tipjar.errors import StoreReconciliationFailed
from tipjar.helpers.logging import get_logger
from tipjar.tips.models import TipOutcome


if TYPE_CHECKING:
    from tipjar.tips.orchestrator import TipOrchestrator
    from tipjar.tips.reconciler import TipLedgerReconciler
    from tipjar.wallet.models import WalletSession


logger = get_logger(__name__)


class TipFlow:
    """Runs the orchestrator, then the reconciler with the resulting hash.

    Errors before the broadcast propagate unchanged. A bookkeeping failure
    after the broadcast is returned inside the outcome instead, because the
    caller must not treat it as a failed transfer and send again.

    Example:
        ```python
        flow = TipFlow(orchestrator, reconciler)
        outcome = await flow.send(session, creator.address, "1", creator_id=creator.id)
        if not outcome.recorded:
            console.print(f"[yellow]{outcome.recording_error}[/yellow]")
        ```
    """

    def __init__(
        self,
        orchestrator: "TipOrchestrator",
        reconciler: "TipLedgerReconciler",
    ) -> None:
        self.orchestrator = orchestrator
        self.reconciler = reconciler

    async def send(
        self,
        session: "WalletSession",
        recipient: str,
        amount: str,
        *,
        creator_id: str | None = None,
        gas_limit: int | None = None,
    ) -> TipOutcome:
        tx_hash = await self.orchestrator.send_tip(
            session, recipient, amount, gas_limit=gas_limit
        )
        # The session may have changed during the prompt, record the signer
        attempt = self.orchestrator.last_attempt
        from_address = (
            attempt.request.from_address
            if attempt is not None and attempt.request is not None
            else session.address or ""
        )
        try:
            record = await self.reconciler.record(
                from_address=from_address,
                to_address=recipient,
                amount=amount,
                tx_hash=tx_hash,
                creator_id=creator_id,
            )
        except StoreReconciliationFailed as e:
            return TipOutcome(tx_hash=tx_hash, recording_error=str(e))
        return TipOutcome(tx_hash=tx_hash, record=record)


__all__ = ["TipFlow"]
