"""Confirm a registration against the network before funds are sent."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..clients.base import MemoChecker
from ..domain import ValidationResult
from ..errors import ConsistencyError, ExpiryError

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def parse_memo_check(raw_base_units: str, data: dict[str, Any]) -> ValidationResult:
    return ValidationResult(
        reference_id=str(data.get("reference", "")),
        memo_on_file=str(data.get("memo", "")),
        available=_to_bool(data.get("available")),
        expires_at_height=_to_int(data.get("expires_at")),
        usage_count=_to_int(data.get("usage_count")),
        max_use=_to_int(data.get("max_use")),
        raw_base_units=raw_base_units,
    )


class RegistrationAuditor:
    """Hard correctness gate between an encoded amount and the memo on chain.

    Results are keyed by the exact raw amount and must be fetched again
    whenever the amount changes.
    """

    name = "Memo Registration Audit"

    def __init__(self, checker: MemoChecker):
        self.checker = checker

    async def confirm(
        self,
        asset_id: str,
        raw_base_units: str,
        expected_memo: str,
        expected_reference_id: str,
    ) -> ValidationResult:
        """Check that ``raw_base_units`` resolves to the expected reference and memo.

        Raises:
            ConsistencyError: On any mismatch. This is never retried: the
                same inputs cannot produce a different answer, and a silent
                mismatch would send funds against the wrong memo.
        """
        request = {"asset": asset_id, "raw_amount": raw_base_units}
        logger.info("Checking memo registration for %s/%s", asset_id, raw_base_units)
        data = await self.checker.check_memo(asset_id, raw_base_units)

        errors: list[str] = []
        if str(data.get("reference", "")) != expected_reference_id:
            errors.append(
                f"Reference mismatch: expected {expected_reference_id}, "
                f"got {data.get('reference')}"
            )
        if str(data.get("memo", "")) != expected_memo:
            errors.append(
                f"Memo mismatch: expected {expected_memo}, got {data.get('memo')}"
            )

        if errors:
            logger.error(
                "Memo validation aborted (%d errors): %s | request=%s | response=%s",
                len(errors),
                "; ".join(errors),
                json.dumps(request, sort_keys=True),
                json.dumps(data, sort_keys=True, default=str),
            )
            raise ConsistencyError(
                "; ".join(errors),
                request=request,
                response=dict(data),
                asset=asset_id,
                reference=expected_reference_id,
                raw_amount=raw_base_units,
            )

        result = parse_memo_check(raw_base_units, data)
        logger.info(
            "✓ %s: reference %s confirmed (used %d/%d, expires at %d)",
            self.name,
            result.reference_id,
            result.usage_count,
            result.max_use,
            result.expires_at_height,
        )
        return result


def ensure_usable(
    result: ValidationResult,
    current_height: int,
    *,
    asset_id: str | None = None,
) -> None:
    """Reject a registration that is expired or has no uses left.

    Raises:
        ExpiryError: The depositor must register a new reference.
    """
    context = {
        "asset": asset_id,
        "reference": result.reference_id,
        "raw_amount": result.raw_base_units,
    }
    if result.usage_exhausted:
        raise ExpiryError(
            f"Reference {result.reference_id} has been used "
            f"{result.usage_count} of {result.max_use} times",
            **context,
        )
    if result.expires_at_height and current_height >= result.expires_at_height:
        raise ExpiryError(
            f"Reference {result.reference_id} expired at height "
            f"{result.expires_at_height} (current {current_height})",
            **context,
        )
