"""Pydantic models for creators and tip records exchanged with the tip store."""

from datetime import datetime
from enum import StrEnum

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tipjar.helpers.parsers import AMOUNT_PATTERN, is_valid_address


class TipStatus(StrEnum):
    """Lifecycle status of a tip record as stored off-chain."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class Creator(BaseModel):
    """A registered creator as returned by the store."""

    id: str
    name: str
    address: str
    description: str = ""
    avatar: str = ""
    total_tips: str = Field(default="0", alias="totalTips", description="Decimal amount")
    tip_count: int = Field(default=0, alias="tipCount", ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NewCreator(BaseModel):
    """Payload for registering a creator."""

    name: str = Field(..., min_length=1)
    address: str
    description: str = Field(..., min_length=1)

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not is_valid_address(value):
            msg = f"Invalid creator address: {value!r}"
            raise ValueError(msg)
        return value


class TipSubmission(BaseModel):
    """What the reconciler posts to the store once a transaction hash exists."""

    from_address: str = Field(..., alias="fromAddress")
    to_address: str = Field(..., alias="toAddress")
    amount: str
    tx_hash: str = Field(..., alias="txHash", min_length=1)
    creator_id: str | None = Field(default=None, alias="creatorId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: str) -> str:
        if not AMOUNT_PATTERN.match(value):
            msg = f"Invalid amount: {value!r}"
            raise ValueError(msg)
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TipRecord(BaseModel):
    """A stored tip. Owned by the store, never modified by this package."""

    id: str
    from_address: str = Field(..., alias="fromAddress")
    to_address: str = Field(..., alias="toAddress")
    amount: str
    tx_hash: str = Field(..., alias="txHash")
    creator_id: str | None = Field(default=None, alias="creatorId")
    timestamp: datetime
    status: TipStatus = TipStatus.PENDING

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class TipOutcome(BaseModel):
    """Result of sending a tip and recording it.

    ``record`` is None when bookkeeping failed after the broadcast, in which
    case ``recording_error`` says why. The transfer itself went out either way.
    """

    tx_hash: str
    record: TipRecord | None = None
    recording_error: str | None = None

    @property
    def recorded(self) -> bool:
        return self.record is not None


__all__ = [
    "Creator",
    "NewCreator",
    "TipOutcome",
    "TipRecord",
    "TipStatus",
    "TipSubmission",
]
