from __future__ import annotations

import re

_DECIMAL_RE = re.compile(r"^(\d*)(?:\.(\d*))?$")


def split_decimal(value: str) -> tuple[str, str]:
    """Split a non-negative decimal string into integer and fractional digits.

    Args:
        value: Decimal string such as ``"1.5"``, ``".5"`` or ``"12"``.

    Returns:
        ``(integer_digits, fraction_digits)``; the integer part is normalized
        to have no leading zeros (``"0"`` when empty).

    Raises:
        ValueError: If ``value`` is not a plain non-negative decimal.
    """
    text = value.strip()
    match = _DECIMAL_RE.match(text)
    if not match or not (match.group(1) or match.group(2)):
        raise ValueError(f"Not a non-negative decimal amount: {value!r}")
    integer_digits = match.group(1).lstrip("0") or "0"
    return integer_digits, match.group(2) or ""


def to_base_units(value: str, decimals: int) -> int:
    """Convert a decimal string to integer base units, truncating extra digits.

    Notes:
        - Digits beyond ``decimals`` are dropped, never rounded.
        - Works on the digit strings directly; no float conversion.
    """
    integer_digits, fraction_digits = split_decimal(value)
    fraction = fraction_digits[:decimals].ljust(decimals, "0")
    return int(integer_digits + fraction)


def from_base_units(value: int, decimals: int) -> str:
    """Render integer base units as a decimal string with ``decimals`` places."""
    if value < 0:
        raise ValueError(f"Base units must be non-negative, got {value}")
    if decimals == 0:
        return str(value)
    digits = str(value).rjust(decimals + 1, "0")
    return f"{digits[:-decimals]}.{digits[-decimals:]}"
