import pytest

from thor_memoless.domain import (
    ExpiryEstimate,
    InboundAddress,
    ValidationResult,
    chain_of,
    is_token_asset,
)
from thor_memoless.errors import DustError, MemolessError


@pytest.mark.parametrize(
    "asset_id,chain,token",
    [
        ("BTC.BTC", "BTC", False),
        ("eth.eth", "ETH", False),
        ("ETH.USDC-0XA0B86991C6218B36C1D19D4A2E9EB0CE3606EB48", "ETH", True),
        ("GAIA.ATOM", "GAIA", False),
    ],
)
def test_asset_identifier_helpers(asset_id, chain, token):
    assert chain_of(asset_id) == chain
    assert is_token_asset(asset_id) is token


def test_usage_exhausted_only_when_limited():
    result = ValidationResult("1", "m", True, 0, usage_count=5, max_use=0)
    assert result.usage_exhausted is False

    limited = ValidationResult("1", "m", True, 0, usage_count=2, max_use=2)
    assert limited.usage_exhausted is True


def test_inbound_accepts_deposits():
    assert InboundAddress("BTC", "bc1q", 0).accepts_deposits is True
    assert InboundAddress("BTC", "bc1q", 0, chain_trading_paused=True).accepts_deposits is False


def test_expiry_estimate_expired():
    assert ExpiryEstimate(0, 0).expired is True
    assert ExpiryEstimate(1, 6).expired is False


def test_errors_carry_context():
    error = DustError(
        "too small",
        minimum_amount="0.0001",
        asset="BTC.BTC",
        reference="00003",
        raw_amount="3",
    )

    assert isinstance(error, MemolessError)
    assert error.context == {"asset": "BTC.BTC", "reference": "00003", "raw_amount": "3"}
    assert error.minimum_amount == "0.0001"
