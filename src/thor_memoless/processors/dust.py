from __future__ import annotations

from decimal import Decimal

from ..constants import THORNODE_DECIMALS
from ..units import from_base_units


def normalize_dust_threshold(
    dust_threshold_base_units: int, decimals: int = THORNODE_DECIMALS
) -> Decimal:
    """Express a raw dust threshold in asset units at ``decimals`` precision."""
    return Decimal(from_base_units(dust_threshold_base_units, decimals))


def is_above_dust_threshold(
    amount: str,
    dust_threshold_base_units: int,
    decimals: int = THORNODE_DECIMALS,
) -> bool:
    """Return True when ``amount`` is strictly greater than the dust threshold.

    Args:
        amount: Decimal string in asset units.
        dust_threshold_base_units: Raw threshold as reported for the chain.
        decimals: Precision the raw threshold is expressed at.

    Notes:
        - Decimal values are built from strings, so the comparison is exact.
        - An amount equal to the threshold is dust.
    """
    return Decimal(amount) > normalize_dust_threshold(
        dust_threshold_base_units, decimals
    )
