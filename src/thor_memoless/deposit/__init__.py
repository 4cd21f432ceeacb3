from __future__ import annotations

from .instructions import (
    DepositInstructionBuilder,
    InboundAddressCache,
    parse_inbound_address,
)
from .payment_uri import PAYMENT_URI_TEMPLATES, PaymentUriTemplate, render_payment_uri
from .qr import SvgQRRenderer

__all__ = [
    "DepositInstructionBuilder",
    "InboundAddressCache",
    "PAYMENT_URI_TEMPLATES",
    "PaymentUriTemplate",
    "SvgQRRenderer",
    "parse_inbound_address",
    "render_payment_uri",
]
