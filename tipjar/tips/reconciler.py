"""Records broadcast tips in the off-chain store."""

from typing import TYPE_CHECKING

from pydantic import ValidationError

from tipjar.errors import StoreError, StoreReconciliationFailed
from tipjar.helpers.logging import get_logger
from tipjar.tips.models import TipStatus, TipSubmission


if TYPE_CHECKING:
    import httpx

    from tipjar.tips.models import TipRecord
    from tipjar.tips.store import TipStoreClient


logger = get_logger(__name__)


class TipLedgerReconciler:
    """Posts a tip record once its transaction hash exists.

    A failure here never touches the chain transaction, the transfer has
    already been broadcast. It is reported as ``StoreReconciliationFailed``.
    """

    def __init__(
        self, store: "TipStoreClient", http_client: "httpx.AsyncClient"
    ) -> None:
        self.store = store
        self.http_client = http_client

    async def record(
        self,
        *,
        from_address: str,
        to_address: str,
        amount: str,
        tx_hash: str,
        creator_id: str | None = None,
    ) -> "TipRecord":
        """Store a tip as pending and let the store update creator aggregates.

        Args:
            from_address: Sending account
            to_address: Receiving account
            amount: Decimal amount exactly as sent
            tx_hash: Hash returned by the provider, must not be empty
            creator_id: Creator whose totals the store should bump

        Returns:
            The stored record

        Raises:
            ValueError: If tx_hash is empty, no record is made without one
            StoreReconciliationFailed: If the store rejected or lost the record
        """
        if not tx_hash:
            msg = "Refusing to record a tip without a transaction hash"
            raise ValueError(msg)

        try:
            submission = TipSubmission(
                from_address=from_address,
                to_address=to_address,
                amount=amount,
                tx_hash=tx_hash,
                creator_id=creator_id,
            )
            record = await self.store.record_tip(self.http_client, submission)
        except (StoreError, ValidationError) as e:
            logger.warning("Transfer %s sent but not recorded: %s", tx_hash, e)
            raise StoreReconciliationFailed(tx_hash, e) from e

        if record.tx_hash != tx_hash:
            logger.warning(
                "Store echoed hash %s for transfer %s", record.tx_hash, tx_hash
            )
            mismatch = StoreError(f"store returned hash {record.tx_hash}")
            raise StoreReconciliationFailed(tx_hash, mismatch)

        if record.status is not TipStatus.PENDING:
            logger.info("Store reported tip %s as %s", record.id, record.status)

        logger.info("Recorded tip %s for transfer %s", record.id, tx_hash)
        return record


__all__ = ["TipLedgerReconciler"]
