from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from ..constants import (
    DEFAULT_ASSET_DECIMALS,
    HOME_CHAIN,
    POOL_STATUS_AVAILABLE,
    THORNODE_DECIMALS,
)
from ..domain import Asset, chain_of, is_token_asset

logger = logging.getLogger(__name__)


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def _pool_decimals(pool: Mapping[str, Any]) -> int:
    raw = pool.get("decimals", pool.get("decimal"))
    try:
        decimals = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_ASSET_DECIMALS
    return decimals if decimals > 0 else DEFAULT_ASSET_DECIMALS


def resolve_eligible_assets(
    pools: Iterable[Mapping[str, Any]], home_chain: str = HOME_CHAIN
) -> list[Asset]:
    """Derive the assets usable for memoless registration from a pool snapshot.

    Args:
        pools: Raw pool entries (``asset``, ``status``, ``decimals``,
            ``balance_rune``, optional ``asset_tor_price``).
        home_chain: Chain whose assets accept memos natively and are skipped.

    Returns:
        Eligible assets, deepest liquidity first, ties by identifier.

    Entries without an asset identifier are skipped with a warning.
    """
    assets: list[Asset] = []
    for pool in pools:
        asset_id = pool.get("asset")
        if not asset_id or not isinstance(asset_id, str):
            logger.warning("Skipping pool entry without asset identifier: %s", pool)
            continue

        status = str(pool.get("status", "")).lower()
        if status != POOL_STATUS_AVAILABLE:
            logger.debug("Skipping %s with status %s", asset_id, pool.get("status"))
            continue

        chain = chain_of(asset_id)
        if chain == home_chain.upper():
            logger.debug("Skipping %s: native %s asset accepts memos", asset_id, chain)
            continue

        if is_token_asset(asset_id):
            logger.debug("Skipping token asset %s", asset_id)
            continue

        assets.append(
            Asset(
                id=asset_id,
                chain_id=chain,
                decimals=_pool_decimals(pool),
                price_usd=_to_decimal(pool.get("asset_tor_price")).scaleb(
                    -THORNODE_DECIMALS
                ),
                liquidity_weight=_to_decimal(pool.get("balance_rune")),
                is_token=False,
            )
        )

    assets.sort(key=lambda a: a.id)
    assets.sort(key=lambda a: a.liquidity_weight, reverse=True)
    return assets


def find_asset(assets: Iterable[Asset], asset_id: str) -> Asset | None:
    """Look up an eligible asset by identifier, case-insensitively."""
    wanted = asset_id.upper()
    return next((a for a in assets if a.id.upper() == wanted), None)
