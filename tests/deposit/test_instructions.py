from decimal import Decimal

import pytest

from thor_memoless.deposit.instructions import (
    DepositInstructionBuilder,
    InboundAddressCache,
    parse_inbound_address,
)
from thor_memoless.domain import Asset
from thor_memoless.errors import ChainUnavailableError, DustError

BTC = Asset(id="BTC.BTC", chain_id="BTC", decimals=8)
SOL = Asset(id="SOL.SOL", chain_id="SOL", decimals=9)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FailingRenderer:
    def render(self, payload: str) -> str:
        raise RuntimeError("renderer crashed")


class EchoRenderer:
    def render(self, payload: str) -> str:
        return f"qr:{payload}"


def test_parse_inbound_address_handles_string_flags():
    inbound = parse_inbound_address(
        {
            "chain": "btc",
            "address": "bc1q",
            "dust_threshold": "10000",
            "halted": "true",
            "chain_trading_paused": "false",
        }
    )

    assert inbound.chain_id == "BTC"
    assert inbound.dust_threshold_base_units == 10000
    assert inbound.halted is True
    assert inbound.chain_trading_paused is False
    assert inbound.accepts_deposits is False


@pytest.mark.asyncio
async def test_cache_reuses_addresses_within_ttl(api):
    clock = FakeClock()
    cache = InboundAddressCache(api, ttl_seconds=120, clock=clock)

    await cache.get("BTC")
    clock.now = 119
    await cache.get("ETH")

    assert api.call_names().count("get_inbound_addresses") == 1


@pytest.mark.asyncio
async def test_cache_refetches_after_ttl(api):
    clock = FakeClock()
    cache = InboundAddressCache(api, ttl_seconds=120, clock=clock)

    await cache.get("BTC")
    api.inbound_addresses[0]["address"] = "bc1qrotated"
    clock.now = 120
    inbound = await cache.get("BTC")

    assert inbound.deposit_address == "bc1qrotated"
    assert api.call_names().count("get_inbound_addresses") == 2


@pytest.mark.asyncio
async def test_cache_clear_forces_refresh(api):
    cache = InboundAddressCache(api, clock=FakeClock())

    await cache.get("BTC")
    cache.clear()
    await cache.get("BTC")

    assert api.call_names().count("get_inbound_addresses") == 2


@pytest.mark.asyncio
async def test_cache_unknown_chain(api):
    cache = InboundAddressCache(api, clock=FakeClock())

    with pytest.raises(ChainUnavailableError, match="SOL"):
        await cache.get("SOL")


@pytest.mark.asyncio
async def test_build_instruction(api):
    builder = DepositInstructionBuilder(InboundAddressCache(api, clock=FakeClock()))

    instruction = await builder.build(BTC, "1.00000003")

    assert instruction.chain_id == "BTC"
    assert instruction.deposit_address == "bc1qinbound"
    assert instruction.encoded_amount == "1.00000003"
    assert instruction.qr_payload == "bitcoin:bc1qinbound?amount=1.00000003"
    assert instruction.qr_image is None


@pytest.mark.asyncio
async def test_build_attaches_rendered_qr(api):
    builder = DepositInstructionBuilder(
        InboundAddressCache(api, clock=FakeClock()), qr_renderer=EchoRenderer()
    )

    instruction = await builder.build(BTC, "1.00000003")

    assert instruction.qr_image == "qr:bitcoin:bc1qinbound?amount=1.00000003"


@pytest.mark.asyncio
async def test_qr_failure_is_not_fatal(api, caplog):
    builder = DepositInstructionBuilder(
        InboundAddressCache(api, clock=FakeClock()), qr_renderer=FailingRenderer()
    )

    with caplog.at_level("WARNING"):
        instruction = await builder.build(BTC, "1.00000003")

    assert instruction.qr_image is None
    assert instruction.qr_payload == "bitcoin:bc1qinbound?amount=1.00000003"
    assert "QR code rendering failed" in caplog.text


@pytest.mark.asyncio
async def test_build_rejects_dust(api):
    builder = DepositInstructionBuilder(InboundAddressCache(api, clock=FakeClock()))

    with pytest.raises(DustError) as exc_info:
        await builder.build(BTC, "0.00010000")

    assert exc_info.value.minimum_amount == str(Decimal("0.00010000"))
    assert exc_info.value.asset == "BTC.BTC"


@pytest.mark.asyncio
async def test_build_rejects_halted_chain(api):
    api.inbound_addresses[0]["halted"] = True
    builder = DepositInstructionBuilder(InboundAddressCache(api, clock=FakeClock()))

    with pytest.raises(ChainUnavailableError, match="not accepting deposits"):
        await builder.build(BTC, "1.00000003")


@pytest.mark.asyncio
async def test_build_rejects_paused_chain(api):
    api.inbound_addresses[0]["chain_trading_paused"] = True
    builder = DepositInstructionBuilder(InboundAddressCache(api, clock=FakeClock()))

    with pytest.raises(ChainUnavailableError):
        await builder.build(BTC, "1.00000003")


@pytest.mark.asyncio
async def test_unmapped_chain_uses_bare_amount(api):
    api.inbound_addresses.append({"chain": "SOL", "address": "So1addr", "dust_threshold": "0"})
    builder = DepositInstructionBuilder(InboundAddressCache(api, clock=FakeClock()))

    instruction = await builder.build(SOL, "2.000000042")

    assert instruction.qr_payload == "2.000000042"
