"""Deposit instruction assembly: inbound address, dust check, payment URI."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from ..clients.base import InboundAddressProvider, QRRenderer
from ..constants import THORNODE_DECIMALS
from ..domain import Asset, DepositInstruction, InboundAddress
from ..errors import ChainUnavailableError, DustError
from ..processors.dust import is_above_dust_threshold, normalize_dust_threshold
from .payment_uri import PAYMENT_URI_TEMPLATES, PaymentUriTemplate, render_payment_uri

logger = logging.getLogger(__name__)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def parse_inbound_address(data: Mapping[str, Any]) -> InboundAddress:
    return InboundAddress(
        chain_id=str(data.get("chain", "")).upper(),
        deposit_address=str(data.get("address", "")),
        dust_threshold_base_units=int(data.get("dust_threshold") or 0),
        halted=_to_bool(data.get("halted")),
        chain_trading_paused=_to_bool(data.get("chain_trading_paused")),
    )


class InboundAddressCache:
    """Inbound addresses for one flow, refetched once ``ttl_seconds`` elapse.

    Vault addresses rotate, so a cache must never outlive its flow.
    """

    def __init__(
        self,
        provider: InboundAddressProvider,
        ttl_seconds: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, InboundAddress] = {}
        self._fetched_at: float | None = None

    def _is_fresh(self) -> bool:
        return (
            self._fetched_at is not None
            and self._clock() - self._fetched_at < self.ttl_seconds
        )

    async def _refresh(self) -> None:
        raw = await self.provider.get_inbound_addresses()
        entries = {}
        for item in raw:
            inbound = parse_inbound_address(item)
            if inbound.chain_id:
                entries[inbound.chain_id] = inbound
        self._entries = entries
        self._fetched_at = self._clock()
        logger.debug("Fetched inbound addresses for %d chains", len(entries))

    async def get(self, chain_id: str) -> InboundAddress:
        if not self._is_fresh():
            await self._refresh()
        inbound = self._entries.get(chain_id.upper())
        if inbound is None or not inbound.deposit_address:
            raise ChainUnavailableError(f"No inbound address found for chain: {chain_id}")
        return inbound

    def clear(self) -> None:
        self._entries = {}
        self._fetched_at = None


class DepositInstructionBuilder:
    """Turns an encoded amount into the address, amount and QR payload to show."""

    def __init__(
        self,
        inbound_addresses: InboundAddressCache,
        templates: Mapping[str, PaymentUriTemplate] = PAYMENT_URI_TEMPLATES,
        qr_renderer: QRRenderer | None = None,
    ):
        self.inbound_addresses = inbound_addresses
        self.templates = templates
        self.qr_renderer = qr_renderer

    async def resolve_inbound(self, asset: Asset) -> InboundAddress:
        inbound = await self.inbound_addresses.get(asset.chain_id)
        if not inbound.accepts_deposits:
            raise ChainUnavailableError(
                f"Chain {asset.chain_id} is not accepting deposits "
                f"(halted={inbound.halted}, trading_paused={inbound.chain_trading_paused})",
                asset=asset.id,
            )
        return inbound

    def check_dust(
        self,
        asset: Asset,
        encoded_amount: str,
        inbound: InboundAddress,
        *,
        reference: str | None = None,
        raw_amount: str | None = None,
    ) -> None:
        """Raise DustError when ``encoded_amount`` is not above the chain minimum.

        The reference digits are fixed, so the caller must raise the base value.
        """
        if is_above_dust_threshold(
            encoded_amount, inbound.dust_threshold_base_units, THORNODE_DECIMALS
        ):
            return
        minimum = normalize_dust_threshold(
            inbound.dust_threshold_base_units, THORNODE_DECIMALS
        )
        raise DustError(
            f"Amount {encoded_amount} is below the dust threshold of {minimum}. "
            "Please increase your deposit amount.",
            minimum_amount=str(minimum),
            asset=asset.id,
            reference=reference,
            raw_amount=raw_amount,
        )

    def _render_qr(self, payload: str) -> str | None:
        if self.qr_renderer is None:
            return None
        try:
            return self.qr_renderer.render(payload)
        except Exception as e:
            logger.warning("QR code rendering failed, URI remains usable: %s", e)
            return None

    async def build(self, asset: Asset, encoded_amount: str) -> DepositInstruction:
        """Build the instruction for sending ``encoded_amount`` of ``asset``.

        Raises:
            ChainUnavailableError: No usable inbound address for the chain.
            DustError: The amount is at or below the chain's dust threshold.
        """
        inbound = await self.resolve_inbound(asset)
        self.check_dust(asset, encoded_amount, inbound)

        payload = render_payment_uri(
            asset.chain_id, inbound.deposit_address, encoded_amount, self.templates
        )
        return DepositInstruction(
            chain_id=asset.chain_id,
            deposit_address=inbound.deposit_address,
            encoded_amount=encoded_amount,
            qr_payload=payload,
            qr_image=self._render_qr(payload),
        )
