"""Per-chain payment URI templates for deposit QR codes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentUriTemplate:
    """How a wallet on one chain family expects a payment request.

    UTXO-style chains use ``scheme:address?amount=X``; account-style chains
    use ``scheme:address?value=X``, optionally with ``@<chain id>`` after the
    address.
    """

    scheme: str
    amount_param: str = "amount"
    chain_numeric_id: int | None = None

    def render(self, address: str, amount: str) -> str:
        target = address
        if self.chain_numeric_id is not None:
            target = f"{address}@{self.chain_numeric_id}"
        return f"{self.scheme}:{target}?{self.amount_param}={amount}"


PAYMENT_URI_TEMPLATES: Mapping[str, PaymentUriTemplate] = MappingProxyType(
    {
        "BTC": PaymentUriTemplate("bitcoin"),
        "LTC": PaymentUriTemplate("litecoin"),
        "BCH": PaymentUriTemplate("bitcoincash"),
        "DOGE": PaymentUriTemplate("dogecoin"),
        "TRON": PaymentUriTemplate("tron"),
        "GAIA": PaymentUriTemplate("cosmos"),
        "AVAX": PaymentUriTemplate("avalanche"),
        "XRP": PaymentUriTemplate("xrp"),
        "ETH": PaymentUriTemplate("ethereum", amount_param="value"),
        "BSC": PaymentUriTemplate("ethereum", amount_param="value", chain_numeric_id=56),
        "BASE": PaymentUriTemplate(
            "ethereum", amount_param="value", chain_numeric_id=8453
        ),
    }
)


def render_payment_uri(
    chain_id: str,
    address: str,
    amount: str,
    templates: Mapping[str, PaymentUriTemplate] = PAYMENT_URI_TEMPLATES,
) -> str:
    """Render the payment URI for ``chain_id``.

    Unmapped chains get the bare amount as payload and a warning.
    """
    template = templates.get(chain_id.upper())
    if template is None:
        logger.warning(
            "Unknown chain %s for payment URI; QR payload carries the amount only",
            chain_id,
        )
        return amount
    return template.render(address, amount)
