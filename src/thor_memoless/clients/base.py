"""Collaborator contracts consumed by the memoless flow."""

from __future__ import annotations

from typing import Any, Protocol


class PoolSnapshotProvider(Protocol):
    async def get_pools(self) -> list[dict[str, Any]]:
        """Return raw pool entries (asset, status, decimals, balance_rune)."""
        ...


class MemoLookup(Protocol):
    async def get_memo_reference(self, tx_id: str) -> dict[str, Any] | None:
        """Return the registration recorded by ``tx_id``, or None if not indexed yet."""
        ...


class MemoChecker(Protocol):
    async def check_memo(self, asset_id: str, raw_amount: str) -> dict[str, Any]:
        """Return the reference, memo, expiry and usage bound to an exact raw amount."""
        ...


class InboundAddressProvider(Protocol):
    async def get_inbound_addresses(self) -> list[dict[str, Any]]: ...


class ChainHeightProvider(Protocol):
    async def get_current_height(self) -> int: ...


class TransactionSubmitter(Protocol):
    """Signs and broadcasts a deposit; key handling lives outside this package."""

    async def submit(self, asset: str, amount: str, memo: str) -> str:
        """Submit the transaction and return its identifier."""
        ...


class QRRenderer(Protocol):
    def render(self, payload: str) -> str:
        """Return a renderable image (data URL) for ``payload``."""
        ...


class ThornodeApi(
    PoolSnapshotProvider,
    MemoLookup,
    MemoChecker,
    InboundAddressProvider,
    ChainHeightProvider,
    Protocol,
):
    """All read-only network collaborators served by one THORNode."""
