"""High-level memoless flow runner."""

from __future__ import annotations

import asyncio

from ..clients.base import QRRenderer, ThornodeApi, TransactionSubmitter
from ..domain import RegistrationIntent
from ..errors import InputError
from ..state import AppState
from .flow import MemolessFlow


async def run_memoless_flow(
    state: AppState,
    api: ThornodeApi,
    requested_value: str,
    *,
    intent: RegistrationIntent | None = None,
    submitter: TransactionSubmitter | None = None,
    registration_tx_id: str | None = None,
    asset_id: str | None = None,
    memo: str | None = None,
    qr_renderer: QRRenderer | None = None,
) -> MemolessFlow:
    """Run a memoless flow up to ReadyToDeposit.

    This is a thin orchestrator that sequences the flow steps:
    1. Registration (new intent) or resumption (existing tx id)
    2. Reference lookup with backoff
    3. Amount encoding
    4. Dust check, audit and deposit instruction

    Args:
        state: Application state containing settings and logger
        api: THORNode collaborators
        requested_value: Amount the depositor wants to send
        intent: Memo to register; requires ``submitter``
        submitter: Signs and broadcasts the registration deposit
        registration_tx_id: Resume a registration submitted earlier
        asset_id: Asset of the resumed registration, when known
        memo: Memo of the resumed registration, cross-checked when given
        qr_renderer: Optional renderer for the deposit QR code

    Returns:
        The flow, in ReadyToDeposit with its instruction in ``flow.ctx``.
    """
    s = state.settings
    log = state.logger

    if registration_tx_id is None and (intent is None or submitter is None):
        raise InputError(
            "Either a registration tx id or an intent with a submitter is required"
        )

    flow = MemolessFlow(api, s, qr_renderer=qr_renderer)
    timeout_s = s.global_timeout_seconds

    async def _run_flow() -> None:
        if registration_tx_id is not None:
            await flow.resume(
                registration_tx_id,
                asset_id=asset_id or (intent.asset_id if intent else None),
                memo=memo or (intent.raw_memo if intent else None),
            )
        else:
            assert intent is not None and submitter is not None
            await flow.register(intent, submitter)
        await flow.await_reference()
        flow.set_amount(requested_value)
        await flow.validate()

    log.info("Starting memoless flow", extra={"requested_value": requested_value})
    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_flow()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_flow()
    except asyncio.TimeoutError as exc:
        log.error(
            "Memoless flow timed out",
            extra={
                "registration_tx_id": flow.ctx.registration_tx_id,
                "timeout_seconds": timeout_s,
            },
        )
        raise asyncio.TimeoutError(
            f"Memoless flow exceeded global timeout {timeout_s}s "
            f"(registration={flow.ctx.registration_tx_id}). The registration can "
            "be resumed with its tx id."
        ) from exc

    log.info(
        "Memoless flow ready to deposit",
        extra={"registration_tx_id": flow.ctx.registration_tx_id},
    )
    return flow
