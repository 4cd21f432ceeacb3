"""Error taxonomy for the memoless flow.

Every error carries the asset, reference and raw amount it concerns (where
known) so callers can render an actionable message without parsing text.
"""

from __future__ import annotations

from typing import Any


class MemolessError(Exception):
    """Base class for all memoless flow errors."""

    def __init__(
        self,
        message: str,
        *,
        asset: str | None = None,
        reference: str | None = None,
        raw_amount: str | None = None,
    ):
        super().__init__(message)
        self.asset = asset
        self.reference = reference
        self.raw_amount = raw_amount

    @property
    def context(self) -> dict[str, str | None]:
        return {
            "asset": self.asset,
            "reference": self.reference,
            "raw_amount": self.raw_amount,
        }


class InputError(MemolessError):
    """Rejected locally before any network call (empty memo, unknown asset)."""


class EncodingError(MemolessError):
    """The amount cannot carry the reference."""


class AmountTooSmall(EncodingError):
    """The value left after removing the reference digits is not positive."""


class DustError(MemolessError):
    """Amount at or below the chain's minimum depositable amount."""

    def __init__(self, message: str, *, minimum_amount: str, **context: Any):
        super().__init__(message, **context)
        self.minimum_amount = minimum_amount


class TransientNetworkError(MemolessError):
    """Endpoint timed out, was unreachable or answered with a retryable status."""


class ReferenceNotFound(MemolessError):
    """The reference lookup was exhausted; the lookup can be resumed later."""

    resumable = True

    def __init__(self, message: str, *, registration_tx_id: str, **context: Any):
        super().__init__(message, **context)
        self.registration_tx_id = registration_tx_id


class ConsistencyError(MemolessError):
    """On-chain reference or memo disagrees with what the flow expects."""

    def __init__(
        self,
        message: str,
        *,
        request: dict[str, Any] | None = None,
        response: dict[str, Any] | None = None,
        **context: Any,
    ):
        super().__init__(message, **context)
        self.request = request or {}
        self.response = response or {}


class ExpiryError(MemolessError):
    """Registration is past its expiry height or its usage is exhausted."""


class ChainUnavailableError(MemolessError):
    """No usable inbound address for the target chain (unknown, halted or paused)."""


class InvalidTransitionError(RuntimeError):
    """Raised when a flow operation is invoked from the wrong state."""
