from __future__ import annotations

from .amount_codec import decode_and_validate, encode_amount
from .dust import is_above_dust_threshold, normalize_dust_threshold
from .eligibility import find_asset, resolve_eligible_assets
from .expiry import estimate_expiry, format_time_remaining

__all__ = [
    "decode_and_validate",
    "encode_amount",
    "estimate_expiry",
    "find_asset",
    "format_time_remaining",
    "is_above_dust_threshold",
    "normalize_dust_threshold",
    "resolve_eligible_assets",
]
