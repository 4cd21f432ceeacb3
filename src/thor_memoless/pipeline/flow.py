"""Memoless flow state machine.

Unregistered -> Registering -> AwaitingReference -> Registered ->
AmountComputed -> Validating -> ReadyToDeposit -> AwaitingTxHash -> Tracked

Failed is entered from Registering, AwaitingReference (resumable) and
Validating (not resumable). An audit mismatch or expiry also fails the
flow when it lands after an amount edit, so Failed is reachable from every
amount-editable state. Amount edits always return to AmountComputed, and
ReadyToDeposit is only ever reached for the exact raw amount that was
validated.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from ..checks.registration_audit import RegistrationAuditor, ensure_usable
from ..clients.base import QRRenderer, ThornodeApi, TransactionSubmitter
from ..deposit.instructions import DepositInstructionBuilder, InboundAddressCache
from ..deposit.payment_uri import PAYMENT_URI_TEMPLATES, PaymentUriTemplate
from ..domain import Asset, DepositInstruction, Registration, RegistrationIntent
from ..errors import (
    ConsistencyError,
    ExpiryError,
    InputError,
    InvalidTransitionError,
    MemolessError,
    ReferenceNotFound,
)
from ..processors.amount_codec import encode_amount
from ..processors.eligibility import find_asset, resolve_eligible_assets
from ..processors.expiry import estimate_expiry
from ..registration.registrar import MemoRegistrar, Sleep, validate_intent
from ..settings import MemolessSettings
from .context import FlowContext

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    UNREGISTERED = "Unregistered"
    REGISTERING = "Registering"
    AWAITING_REFERENCE = "AwaitingReference"
    REGISTERED = "Registered"
    AMOUNT_COMPUTED = "AmountComputed"
    VALIDATING = "Validating"
    READY_TO_DEPOSIT = "ReadyToDeposit"
    AWAITING_TX_HASH = "AwaitingTxHash"
    TRACKED = "Tracked"
    FAILED = "Failed"


_S = FlowState

TRANSITIONS: Mapping[FlowState, frozenset[FlowState]] = MappingProxyType(
    {
        _S.UNREGISTERED: frozenset({_S.REGISTERING, _S.AWAITING_REFERENCE}),
        _S.REGISTERING: frozenset({_S.AWAITING_REFERENCE, _S.FAILED}),
        _S.AWAITING_REFERENCE: frozenset({_S.REGISTERED, _S.FAILED}),
        _S.REGISTERED: frozenset({_S.AMOUNT_COMPUTED, _S.FAILED}),
        _S.AMOUNT_COMPUTED: frozenset(
            {_S.AMOUNT_COMPUTED, _S.VALIDATING, _S.REGISTERED, _S.FAILED}
        ),
        _S.VALIDATING: frozenset(
            {_S.READY_TO_DEPOSIT, _S.AMOUNT_COMPUTED, _S.REGISTERED, _S.FAILED}
        ),
        _S.READY_TO_DEPOSIT: frozenset(
            {_S.AMOUNT_COMPUTED, _S.REGISTERED, _S.AWAITING_TX_HASH, _S.FAILED}
        ),
        _S.AWAITING_TX_HASH: frozenset({_S.TRACKED}),
        _S.TRACKED: frozenset(),
        _S.FAILED: frozenset({_S.AWAITING_REFERENCE}),
    }
)

# States from which the depositor may edit the amount.
AMOUNT_EDITABLE = frozenset(
    {_S.REGISTERED, _S.AMOUNT_COMPUTED, _S.VALIDATING, _S.READY_TO_DEPOSIT}
)


@dataclass(frozen=True)
class FlowFailure:
    reason: str
    failed_in: FlowState
    resumable: bool
    error: Exception | None = None


class MemolessFlow:
    """Sequences registration, encoding, audit and deposit instruction for one deposit.

    Each instance owns its context and caches; nothing is shared between
    flows. All network calls are awaited one after another.
    """

    def __init__(
        self,
        api: ThornodeApi,
        settings: MemolessSettings | None = None,
        *,
        registrar: MemoRegistrar | None = None,
        auditor: RegistrationAuditor | None = None,
        builder: DepositInstructionBuilder | None = None,
        qr_renderer: QRRenderer | None = None,
        uri_templates: Mapping[str, PaymentUriTemplate] = PAYMENT_URI_TEMPLATES,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.settings = settings or MemolessSettings()
        s = self.settings
        self.registrar = registrar or MemoRegistrar(
            api,
            max_attempts=s.reference_max_attempts,
            initial_delay=s.reference_delay,
            max_delay=s.reference_max_delay,
            registration_amount_base_units=s.registration_amount_base_units,
            sleep=sleep,
        )
        self.auditor = auditor or RegistrationAuditor(api)
        self.builder = builder or DepositInstructionBuilder(
            InboundAddressCache(api, s.inbound_cache_ttl_seconds, clock=clock),
            templates=uri_templates,
            qr_renderer=qr_renderer,
        )
        self.ctx = FlowContext()
        self.state = FlowState.UNREGISTERED
        self.failure: FlowFailure | None = None
        self._assets: list[Asset] | None = None

    # --- state handling ---

    def _transition(self, target: FlowState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Cannot move from {self.state.value} to {target.value}"
            )
        logger.debug("Flow state %s -> %s", self.state.value, target.value)
        self.state = target

    def _require(self, *states: FlowState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise InvalidTransitionError(
                f"Operation requires state {expected}, flow is {self.state.value}"
            )

    def _fail(self, error: Exception, *, resumable: bool) -> None:
        failed_in = self.state
        self._transition(FlowState.FAILED)
        self.failure = FlowFailure(
            reason=str(error), failed_in=failed_in, resumable=resumable, error=error
        )
        logger.error(
            "Memoless flow failed in %s (resumable=%s): %s",
            failed_in.value,
            resumable,
            error,
        )

    # --- assets ---

    async def eligible_assets(self, refresh: bool = False) -> list[Asset]:
        """Assets usable for memoless deposits, fetched once per flow."""
        if self._assets is None or refresh:
            pools = await self.api.get_pools()
            self._assets = resolve_eligible_assets(pools)
            logger.info("Found %d eligible assets", len(self._assets))
        return self._assets

    async def _resolve_asset(self, asset_id: str) -> Asset:
        asset = find_asset(await self.eligible_assets(), asset_id)
        if asset is None:
            raise InputError(
                f"Asset {asset_id} is not available for memoless deposits",
                asset=asset_id,
            )
        return asset

    # --- registration ---

    async def register(
        self, intent: RegistrationIntent, submitter: TransactionSubmitter
    ) -> str:
        """Submit the registration for ``intent`` and return its tx id.

        Input errors are raised before anything is sent and leave the flow
        Unregistered.
        """
        self._require(FlowState.UNREGISTERED)
        validate_intent(intent)
        asset = await self._resolve_asset(intent.asset_id)

        self.ctx.intent = intent
        self.ctx.asset = asset
        self._transition(FlowState.REGISTERING)
        try:
            tx_id = await self.registrar.register(intent, submitter)
        except Exception as e:
            self._fail(e, resumable=False)
            raise

        self.ctx.registration_tx_id = tx_id
        self._transition(FlowState.AWAITING_REFERENCE)
        return tx_id

    async def resume(
        self,
        registration_tx_id: str,
        asset_id: str | None = None,
        memo: str | None = None,
    ) -> None:
        """Pick up a registration submitted earlier, by its tx id."""
        if not registration_tx_id:
            raise InputError("Registration tx id is required to resume")
        if self.state == FlowState.FAILED:
            if self.failure is None or not self.failure.resumable:
                raise InvalidTransitionError(
                    "Flow failed permanently; start a new registration"
                )
        else:
            self._require(FlowState.UNREGISTERED)

        if asset_id:
            self.ctx.asset = await self._resolve_asset(asset_id)
        if memo:
            self.ctx.intent = RegistrationIntent(asset_id=asset_id or "", raw_memo=memo)

        self.ctx.registration_tx_id = registration_tx_id
        self.failure = None
        self._transition(FlowState.AWAITING_REFERENCE)
        logger.info("Resuming reference lookup for %s", registration_tx_id)

    def _check_registration(self, registration: Registration) -> None:
        intent = self.ctx.intent
        asset = self.ctx.asset
        expected_asset = (intent.asset_id if intent else None) or (
            asset.id if asset else None
        )
        errors = []
        if expected_asset and registration.asset_id.upper() != expected_asset.upper():
            errors.append(
                f"Asset mismatch: expected {expected_asset}, got {registration.asset_id}"
            )
        if intent and registration.memo != intent.raw_memo:
            errors.append(
                f"Memo mismatch: expected {intent.raw_memo}, got {registration.memo}"
            )
        if errors:
            raise ConsistencyError(
                "; ".join(errors),
                request={"registration_tx_id": registration.registration_tx_id},
                response={
                    "asset": registration.asset_id,
                    "memo": registration.memo,
                    "reference": registration.reference_id,
                },
                asset=registration.asset_id,
                reference=registration.reference_id,
            )

    async def await_reference(self) -> Registration:
        """Wait for the registration's reference.

        Raises:
            ReferenceNotFound: The flow is Failed but can be resumed with the
                same tx id.
            ConsistencyError: The lookup returned a different asset or memo.
        """
        self._require(FlowState.AWAITING_REFERENCE)
        tx_id = self.ctx.registration_tx_id_required
        try:
            registration = await self.registrar.await_reference(tx_id)
        except ReferenceNotFound as e:
            self._fail(e, resumable=True)
            raise

        try:
            self._check_registration(registration)
            if self.ctx.asset is None:
                self.ctx.asset = await self._resolve_asset(registration.asset_id)
        except (ConsistencyError, InputError) as e:
            self._fail(e, resumable=False)
            raise

        self.ctx.registration = registration
        self._transition(FlowState.REGISTERED)
        return registration

    # --- amount ---

    def set_amount(self, requested_value: str) -> str:
        """Encode the reference into ``requested_value`` and return the amount to send.

        Any earlier validation or deposit instruction is discarded. When the
        value cannot carry the reference the flow returns to Registered and
        the EncodingError is raised for correction.
        """
        self._require(*AMOUNT_EDITABLE)
        registration = self.ctx.registration_required
        asset = self.ctx.asset_required

        self.ctx.invalidate_amount()
        try:
            encoding = encode_amount(
                requested_value, registration.reference_id, asset.decimals
            )
        except MemolessError as e:
            if self.state != FlowState.REGISTERED:
                self._transition(FlowState.REGISTERED)
            e.asset = e.asset or asset.id
            raise

        self.ctx.encoding = encoding
        self._transition(FlowState.AMOUNT_COMPUTED)
        logger.info(
            "Encoded %s %s as %s (raw %s)",
            requested_value,
            asset.id,
            encoding.encoded_amount,
            encoding.raw_base_units,
        )
        return encoding.encoded_amount

    # --- validation ---

    async def validate(self) -> DepositInstruction | None:
        """Confirm the current amount on chain and build the deposit instruction.

        Returns:
            The instruction, or None when the amount was edited while this
            validation was in flight (the stale result is discarded).

        Raises:
            DustError: Amount too small; the flow stays AmountComputed.
            ConsistencyError, ExpiryError: The flow is Failed for good.
        """
        self._require(FlowState.AMOUNT_COMPUTED)
        asset = self.ctx.asset_required
        registration = self.ctx.registration_required
        encoding = self.ctx.encoding_required

        inbound = await self.builder.resolve_inbound(asset)
        self.builder.check_dust(
            asset,
            encoding.encoded_amount,
            inbound,
            reference=encoding.reference_id,
            raw_amount=encoding.raw_base_units,
        )
        self.ctx.inbound = inbound

        self._transition(FlowState.VALIDATING)
        try:
            validation = await self.auditor.confirm(
                asset.id,
                encoding.raw_base_units,
                registration.memo,
                registration.reference_id,
            )
            current_height = await self.api.get_current_height()
            ensure_usable(validation, current_height, asset_id=asset.id)
            expiry = estimate_expiry(
                validation.expires_at_height,
                current_height,
                self.settings.block_time_seconds,
            )
            instruction = await self.builder.build(asset, encoding.encoded_amount)
        except (ConsistencyError, ExpiryError) as e:
            # The registration itself is unusable, whatever amount is current.
            if FlowState.FAILED in TRANSITIONS[self.state]:
                self.ctx.invalidate_amount()
                self._fail(e, resumable=False)
            raise
        except Exception:
            if self.ctx.encoding is encoding and self.state == FlowState.VALIDATING:
                self._transition(FlowState.AMOUNT_COMPUTED)
            raise

        if self.ctx.encoding is not encoding or self.state != FlowState.VALIDATING:
            logger.info(
                "Amount changed during validation; discarding result for raw %s",
                encoding.raw_base_units,
            )
            return None

        self.ctx.validation = validation
        self.ctx.expiry = expiry
        self.ctx.instruction = instruction
        self._transition(FlowState.READY_TO_DEPOSIT)
        return instruction

    # --- deposit ---

    def mark_sent(self) -> None:
        """The depositor sent the funds; a tx hash is expected next."""
        self._require(FlowState.READY_TO_DEPOSIT)
        self._transition(FlowState.AWAITING_TX_HASH)

    def track(self, tx_hash: str) -> None:
        self._require(FlowState.AWAITING_TX_HASH)
        if not tx_hash:
            raise InputError("Deposit tx hash must not be empty")
        self.ctx.deposit_tx_hash = tx_hash
        self._transition(FlowState.TRACKED)
        logger.info("Tracking deposit %s", tx_hash)

    async def deposit(self, submitter: TransactionSubmitter) -> str:
        """Send the validated amount through ``submitter`` and track the result."""
        self._require(FlowState.READY_TO_DEPOSIT)
        instruction = self.ctx.instruction_required
        asset = self.ctx.asset_required
        self.mark_sent()
        tx_hash = await submitter.submit(asset.id, instruction.encoded_amount, "")
        self.track(tx_hash)
        return tx_hash
