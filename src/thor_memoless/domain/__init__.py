"""Domain models for the memoless flow."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..constants import DEFAULT_ASSET_DECIMALS


def chain_of(asset_id: str) -> str:
    """Return the chain segment of an asset identifier (``BTC`` for ``BTC.BTC``)."""
    return asset_id.split(".", 1)[0].upper()


def is_token_asset(asset_id: str) -> bool:
    """An asset is a token when its symbol carries a ``-<contract>`` suffix."""
    _, _, symbol = asset_id.partition(".")
    return "-" in symbol


@dataclass(frozen=True)
class Asset:
    """A pool asset usable as a memoless deposit target."""

    id: str
    chain_id: str
    decimals: int = DEFAULT_ASSET_DECIMALS
    price_usd: Decimal = Decimal(0)
    liquidity_weight: Decimal = Decimal(0)
    is_token: bool = False


@dataclass(frozen=True)
class RegistrationIntent:
    asset_id: str
    raw_memo: str


@dataclass(frozen=True)
class Registration:
    """A confirmed memo registration and the reference it was assigned."""

    registration_tx_id: str
    asset_id: str
    memo: str
    reference_id: str
    registration_height: int
    registration_hash: str
    registrant_address: str


@dataclass(frozen=True)
class AmountEncoding:
    reference_id: str
    asset_decimals: int
    requested_value: str
    encoded_amount: str
    raw_base_units: str
    truncated: bool = False


@dataclass(frozen=True)
class ValidationResult:
    """Network confirmation for one exact raw amount."""

    reference_id: str
    memo_on_file: str
    available: bool
    expires_at_height: int
    usage_count: int
    max_use: int
    raw_base_units: str = ""

    @property
    def usage_exhausted(self) -> bool:
        return self.max_use > 0 and self.usage_count >= self.max_use


@dataclass(frozen=True)
class InboundAddress:
    chain_id: str
    deposit_address: str
    dust_threshold_base_units: int
    halted: bool = False
    chain_trading_paused: bool = False

    @property
    def accepts_deposits(self) -> bool:
        return not (self.halted or self.chain_trading_paused)


@dataclass(frozen=True)
class DepositInstruction:
    """Terminal artifact shown to the depositor."""

    chain_id: str
    deposit_address: str
    encoded_amount: str
    qr_payload: str
    qr_image: str | None = None


@dataclass(frozen=True)
class ExpiryEstimate:
    blocks_remaining: int
    seconds_remaining: float

    @property
    def expired(self) -> bool:
        return self.blocks_remaining <= 0
