from __future__ import annotations

from dataclasses import dataclass

from ..domain import (
    AmountEncoding,
    Asset,
    DepositInstruction,
    ExpiryEstimate,
    InboundAddress,
    Registration,
    RegistrationIntent,
    ValidationResult,
)


@dataclass
class FlowContext:
    """Everything one memoless flow has learned so far.

    Owned by a single flow; never shared between flows.
    """

    intent: RegistrationIntent | None = None
    asset: Asset | None = None
    registration_tx_id: str | None = None
    registration: Registration | None = None
    encoding: AmountEncoding | None = None
    inbound: InboundAddress | None = None
    validation: ValidationResult | None = None
    expiry: ExpiryEstimate | None = None
    instruction: DepositInstruction | None = None
    deposit_tx_hash: str | None = None

    def invalidate_amount(self) -> None:
        """Drop everything derived from the current amount."""
        self.encoding = None
        self.validation = None
        self.expiry = None
        self.instruction = None

    @property
    def asset_required(self) -> Asset:
        if self.asset is None:
            raise RuntimeError(
                "Asset has not been set. Ensure register() or resume() is called before accessing this property."
            )
        return self.asset

    @property
    def registration_tx_id_required(self) -> str:
        if self.registration_tx_id is None:
            raise RuntimeError(
                "Registration tx id has not been set. Ensure register() or resume() is called before accessing this property."
            )
        return self.registration_tx_id

    @property
    def registration_required(self) -> Registration:
        if self.registration is None:
            raise RuntimeError(
                "Registration has not been set. Ensure await_reference() is called before accessing this property."
            )
        return self.registration

    @property
    def encoding_required(self) -> AmountEncoding:
        if self.encoding is None:
            raise RuntimeError(
                "Amount encoding has not been set. Ensure set_amount() is called before accessing this property."
            )
        return self.encoding

    @property
    def instruction_required(self) -> DepositInstruction:
        if self.instruction is None:
            raise RuntimeError(
                "Deposit instruction has not been set. Ensure validate() is called before accessing this property."
            )
        return self.instruction
