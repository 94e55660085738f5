"""Pydantic models for wallet sessions, chains and transaction requests."""

from enum import StrEnum

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tipjar.helpers.constants import NATIVE_DECIMALS
from tipjar.helpers.parsers import (
    from_base_units,
    is_valid_address,
    parse_hex_int,
    to_hex,
)


class ProviderEvent(StrEnum):
    """Provider events the bridge can subscribe to."""

    ACCOUNTS_CHANGED = "accountsChanged"
    CHAIN_CHANGED = "chainChanged"


class ChainSwitchOutcome(StrEnum):
    """Result of ``ProviderBridge.ensure_chain``."""

    SWITCHED = "switched"
    ADDED = "added"


class NativeCurrency(BaseModel):
    """Native currency description sent with wallet_addEthereumChain."""

    name: str
    symbol: str
    decimals: int = Field(default=NATIVE_DECIMALS, ge=0)

    model_config = ConfigDict(frozen=True)


class ChainAddParams(BaseModel):
    """Parameters of a wallet_addEthereumChain request."""

    chain_id: str = Field(..., alias="chainId", description="0x-prefixed hex")
    chain_name: str = Field(..., alias="chainName")
    native_currency: NativeCurrency = Field(..., alias="nativeCurrency")
    rpc_urls: list[str] = Field(..., alias="rpcUrls", min_length=1)
    block_explorer_urls: list[str] = Field(
        default_factory=list, alias="blockExplorerUrls"
    )
    icon_urls: list[str] = Field(default_factory=list, alias="iconUrls")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_request_params(self) -> dict[str, Any]:
        """Serialize with the camelCase keys wallets expect."""
        return self.model_dump(by_alias=True)


class ChainConfig(BaseModel):
    """Identity of the one chain tips are sent on.

    The numeric id is the only stored form. The hex form used by providers
    and the add-chain payload are both derived from it.
    """

    chain_id: int = Field(..., gt=0)
    chain_name: str
    currency: NativeCurrency
    rpc_urls: list[str] = Field(..., min_length=1)
    block_explorer_urls: list[str] = Field(default_factory=list)
    icon_urls: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def chain_id_hex(self) -> str:
        return to_hex(self.chain_id)

    @property
    def decimals(self) -> int:
        return self.currency.decimals

    def matches(self, chain_id: str | None) -> bool:
        """Whether a provider-reported hex chain id is this chain."""
        if not chain_id:
            return False
        try:
            return parse_hex_int(chain_id) == self.chain_id
        except ValueError:
            return False

    def add_params(self) -> ChainAddParams:
        return ChainAddParams(
            chain_id=self.chain_id_hex,
            chain_name=self.chain_name,
            native_currency=self.currency,
            rpc_urls=list(self.rpc_urls),
            block_explorer_urls=list(self.block_explorer_urls),
            icon_urls=list(self.icon_urls),
        )


class WalletSession(BaseModel):
    """The live wallet connection, the single source of truth for sending.

    Readers must treat it as a snapshot, provider events replace its fields.
    """

    connected: bool = False
    address: str | None = None
    chain_id: str | None = None
    balance_wei: int = Field(default=0, ge=0)

    @classmethod
    def disconnected(cls) -> "WalletSession":
        return cls()

    def reset(self) -> None:
        """Tear the session down in place."""
        self.connected = False
        self.address = None
        self.chain_id = None
        self.balance_wei = 0

    def balance(self, decimals: int = NATIVE_DECIMALS) -> str:
        """Balance as a decimal string."""
        return from_base_units(self.balance_wei, decimals)


class TransactionRequest(BaseModel):
    """A fully formed value transfer, immutable once built."""

    from_address: str = Field(..., alias="from")
    to: str
    value_wei: int = Field(..., gt=0)
    gas_price: int = Field(..., ge=0)
    gas_limit: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("from_address", "to")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not is_valid_address(value):
            msg = f"Invalid address: {value!r}"
            raise ValueError(msg)
        return value

    def to_provider_params(self) -> dict[str, str]:
        """Hex-encoded eth_sendTransaction parameter object."""
        return {
            "from": self.from_address,
            "to": self.to,
            "value": to_hex(self.value_wei),
            "gas": to_hex(self.gas_limit),
            "gasPrice": to_hex(self.gas_price),
        }


__all__ = [
    "ChainAddParams",
    "ChainConfig",
    "ChainSwitchOutcome",
    "NativeCurrency",
    "ProviderEvent",
    "TransactionRequest",
    "WalletSession",
]
