"""Embed a memo reference in the trailing decimal digits of an amount.

All arithmetic is done on digit strings and Python integers; amounts are
never converted to float, so 8 to 18 decimal places survive exactly.
"""

from __future__ import annotations

import logging

from ..domain import AmountEncoding
from ..errors import AmountTooSmall, EncodingError
from ..units import split_decimal

logger = logging.getLogger(__name__)


def _check_reference(reference_id: str, decimals: int) -> None:
    if not reference_id or not reference_id.isdigit():
        raise EncodingError(
            f"Reference ID must be a non-empty digit string, got {reference_id!r}",
            reference=reference_id,
        )
    if decimals < 0:
        raise EncodingError(
            f"Asset decimals must be non-negative, got {decimals}",
            reference=reference_id,
        )
    if len(reference_id) > decimals:
        raise EncodingError(
            f"Reference ID {reference_id} has {len(reference_id)} digits but the "
            f"asset only has {decimals} decimals",
            reference=reference_id,
        )


def encode_amount(
    requested_value: str, reference_id: str, decimals: int
) -> AmountEncoding:
    """Encode ``reference_id`` into the last decimal digits of ``requested_value``.

    Args:
        requested_value: Amount the depositor wants to send, as a decimal string.
        reference_id: Digit string assigned by the memo registration.
        decimals: Precision of the asset.

    Returns:
        The encoding with the exact amount to send and its raw base units.

    Raises:
        EncodingError: If the value is malformed or the reference does not fit.
        AmountTooSmall: If nothing but the reference would be sent.

    The fractional part is truncated (never rounded) to the digits left
    free by the reference, zero padded, and the reference is appended.
    """
    _check_reference(reference_id, decimals)

    try:
        integer_digits, fraction_digits = split_decimal(requested_value)
    except ValueError as e:
        raise EncodingError(
            f"Amount must be a valid positive number, got {requested_value!r}",
            reference=reference_id,
        ) from e

    free = max(0, decimals - len(reference_id))
    truncated = len(fraction_digits) > free
    if truncated:
        logger.warning(
            "Requested value %s truncated to %d decimals to fit reference %s",
            requested_value,
            free,
            reference_id,
        )
        fraction_digits = fraction_digits[:free]

    fraction = fraction_digits.ljust(free, "0") + reference_id
    encoded_amount = f"{integer_digits}.{fraction}"
    raw_digits = integer_digits + fraction
    raw_base_units = raw_digits.lstrip("0") or "0"

    base_value = int(raw_digits) - int(reference_id)
    if base_value <= 0:
        raise AmountTooSmall(
            "Amount is too small - the base amount (excluding reference ID) "
            "must be greater than 0",
            reference=reference_id,
            raw_amount=raw_base_units,
        )

    return AmountEncoding(
        reference_id=reference_id,
        asset_decimals=decimals,
        requested_value=requested_value,
        encoded_amount=encoded_amount,
        raw_base_units=raw_base_units,
        truncated=truncated,
    )


def decode_and_validate(amount: str, reference_id: str, decimals: int) -> bool:
    """Check that ``amount`` carries ``reference_id`` in its trailing digits.

    The fractional part is truncated (never rounded) to ``decimals`` digits
    and zero padded before the comparison. Malformed amounts return False;
    a reference that cannot fit in ``decimals`` raises EncodingError.
    """
    _check_reference(reference_id, decimals)

    try:
        _, fraction_digits = split_decimal(amount)
    except ValueError:
        return False

    fraction = fraction_digits[:decimals].ljust(decimals, "0")
    return fraction[-len(reference_id) :] == reference_id
