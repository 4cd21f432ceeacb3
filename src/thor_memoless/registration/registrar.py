"""Memo registration and reference retrieval."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any

import backoff

from ..clients.base import MemoLookup, TransactionSubmitter
from ..constants import REGISTRATION_MEMO_PREFIX, RUNE_ASSET, THORNODE_DECIMALS
from ..domain import Registration, RegistrationIntent
from ..errors import InputError, ReferenceNotFound, TransientNetworkError
from ..units import from_base_units

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def build_registration_memo(asset_id: str, memo: str) -> str:
    """Return the deposit memo that registers ``memo`` for ``asset_id``."""
    return f"{REGISTRATION_MEMO_PREFIX}:{asset_id}:{memo}"


def validate_intent(intent: RegistrationIntent) -> None:
    if not intent.asset_id or not intent.asset_id.strip():
        raise InputError("Asset is required for memo registration")
    if not intent.raw_memo or not intent.raw_memo.strip():
        raise InputError("Memo must not be empty", asset=intent.asset_id)


def parse_registration(tx_id: str, data: dict[str, Any]) -> Registration:
    """Build a Registration from a memo-by-transaction lookup payload."""
    return Registration(
        registration_tx_id=tx_id,
        asset_id=str(data.get("asset", "")),
        memo=str(data.get("memo", "")),
        reference_id=str(data["reference"]),
        registration_height=int(data.get("height") or 0),
        registration_hash=str(data.get("registration_hash", "")),
        registrant_address=str(data.get("registered_by", "")),
    )


class MemoRegistrar:
    """Submits memo registrations and polls for the assigned reference.

    ``sleep`` is injectable so the backoff schedule can be exercised
    without real delays.
    """

    def __init__(
        self,
        lookup: MemoLookup,
        *,
        max_attempts: int = 5,
        initial_delay: float = 6.0,
        max_delay: float = 60.0,
        registration_amount_base_units: int = 1,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.lookup = lookup
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.registration_amount = from_base_units(
            registration_amount_base_units, THORNODE_DECIMALS
        )
        self._sleep = sleep

    async def register(
        self, intent: RegistrationIntent, submitter: TransactionSubmitter
    ) -> str:
        """Submit the registration deposit and return its transaction id."""
        validate_intent(intent)
        memo = build_registration_memo(intent.asset_id, intent.raw_memo)
        logger.info("Submitting memo registration for %s", intent.asset_id)
        logger.debug("Registration memo: %s", memo)

        tx_id = await submitter.submit(RUNE_ASSET, self.registration_amount, memo)
        if not tx_id:
            raise InputError(
                "Transaction submitter returned no transaction id",
                asset=intent.asset_id,
            )
        logger.info("Registration submitted: %s", tx_id)
        return tx_id

    def _delays(self, initial_delay: float) -> Iterator[float]:
        wait = backoff.expo(base=2, factor=initial_delay, max_value=self.max_delay)
        next(wait)  # advance past the initial send() slot
        return wait

    async def await_reference(
        self,
        registration_tx_id: str,
        max_attempts: int | None = None,
        initial_delay: float | None = None,
    ) -> Registration:
        """Poll the memo lookup until the reference for ``registration_tx_id`` appears.

        The first lookup waits ``initial_delay`` (one block by default) since
        the registration must be confirmed before it is queryable; each
        following wait doubles, capped at ``max_delay``.

        Raises:
            ReferenceNotFound: After ``max_attempts`` lookups without a
                reference. The same tx id can be passed again later.

        Cancelling the awaiting task is safe; the registration itself is
        already on chain and can be resumed from its tx id.
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")
        delays = self._delays(
            self.initial_delay if initial_delay is None else initial_delay
        )

        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            delay = next(delays)
            logger.debug(
                "Waiting %.1fs before reference lookup %d of %d for %s",
                delay,
                attempt,
                attempts,
                registration_tx_id,
            )
            try:
                await self._sleep(delay)
            except asyncio.CancelledError:
                logger.warning(
                    "Reference lookup for %s cancelled; resume with the same tx id",
                    registration_tx_id,
                )
                raise

            try:
                data = await self.lookup.get_memo_reference(registration_tx_id)
            except TransientNetworkError as e:
                last_error = e
                logger.warning(
                    "Reference lookup failed (attempt %d of %d, waited %.1fs): %s",
                    attempt,
                    attempts,
                    delay,
                    e,
                )
                continue

            if data and data.get("reference"):
                registration = parse_registration(registration_tx_id, data)
                logger.info(
                    "Reference %s assigned to %s at height %d",
                    registration.reference_id,
                    registration.asset_id,
                    registration.registration_height,
                )
                return registration

            logger.warning(
                "Reference not available yet (attempt %d of %d, waited %.1fs) for %s",
                attempt,
                attempts,
                delay,
                registration_tx_id,
            )

        logger.error(
            "Reference lookup gave up after %d attempts for %s",
            attempts,
            registration_tx_id,
        )
        message = (
            f"Reference not found for registration {registration_tx_id} "
            f"after {attempts} attempts"
        )
        if last_error is not None:
            message += f" (last error: {last_error})"
        raise ReferenceNotFound(message, registration_tx_id=registration_tx_id)
