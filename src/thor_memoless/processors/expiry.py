from __future__ import annotations

from ..constants import DEFAULT_BLOCK_TIME_SECONDS
from ..domain import ExpiryEstimate


def estimate_expiry(
    expires_at_height: int,
    current_height: int,
    block_time_seconds: float = DEFAULT_BLOCK_TIME_SECONDS,
) -> ExpiryEstimate:
    """Convert an expiry height into blocks and seconds remaining.

    Zero blocks remaining means the registration has expired.
    """
    blocks_remaining = max(0, expires_at_height - current_height)
    return ExpiryEstimate(
        blocks_remaining=blocks_remaining,
        seconds_remaining=blocks_remaining * block_time_seconds,
    )


def format_time_remaining(estimate: ExpiryEstimate) -> str:
    """Format an estimate for display.

    Returns:
        ``"Expired"``, ``"<1m"``, ``"45m"`` or ``"2h 15m"``.
    """
    if estimate.expired:
        return "Expired"
    seconds = int(estimate.seconds_remaining)
    if seconds >= 3600:
        hours = seconds // 3600
        mins = (seconds % 3600) // 60
        return f"{hours}h {mins}m"
    elif seconds >= 60:
        return f"{seconds // 60}m"
    else:
        return "<1m"
