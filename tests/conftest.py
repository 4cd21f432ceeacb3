from __future__ import annotations

import logging
from typing import Any

import pytest

from thor_memoless.settings import MemolessSettings


class FakeThornode:
    """In-memory stand-in for the THORNode collaborators."""

    def __init__(self) -> None:
        self.pools: list[dict[str, Any]] = [
            {
                "asset": "BTC.BTC",
                "status": "Available",
                "decimals": 8,
                "balance_rune": "5000000000000",
                "asset_tor_price": "6500000000000",
            },
            {
                "asset": "ETH.ETH",
                "status": "Available",
                "decimals": 18,
                "balance_rune": "3000000000000",
            },
            {"asset": "THOR.RUNE", "status": "Available", "balance_rune": "1"},
        ]
        self.memo_references: dict[str, dict[str, Any] | None] = {}
        self.memo_checks: dict[tuple[str, str], dict[str, Any]] = {}
        self.inbound_addresses: list[dict[str, Any]] = [
            {
                "chain": "BTC",
                "address": "bc1qinbound",
                "dust_threshold": "10000",
                "halted": False,
                "chain_trading_paused": False,
            },
            {
                "chain": "ETH",
                "address": "0xinbound",
                "dust_threshold": "0",
                "halted": False,
                "chain_trading_paused": False,
            },
        ]
        self.height = 1000
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def get_pools(self) -> list[dict[str, Any]]:
        self.calls.append(("get_pools", ()))
        return self.pools

    async def get_memo_reference(self, tx_id: str) -> dict[str, Any] | None:
        self.calls.append(("get_memo_reference", (tx_id,)))
        return self.memo_references.get(tx_id)

    async def check_memo(self, asset_id: str, raw_amount: str) -> dict[str, Any]:
        self.calls.append(("check_memo", (asset_id, raw_amount)))
        return self.memo_checks[(asset_id, raw_amount)]

    async def get_inbound_addresses(self) -> list[dict[str, Any]]:
        self.calls.append(("get_inbound_addresses", ()))
        return self.inbound_addresses

    async def get_current_height(self) -> int:
        self.calls.append(("get_current_height", ()))
        return self.height

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class RecordingSubmitter:
    def __init__(self, tx_ids: list[str] | None = None) -> None:
        self.tx_ids = list(tx_ids or ["REGTX"])
        self.submissions: list[tuple[str, str, str]] = []

    async def submit(self, asset: str, amount: str, memo: str) -> str:
        self.submissions.append((asset, amount, memo))
        return self.tx_ids.pop(0)


@pytest.fixture
def api() -> FakeThornode:
    return FakeThornode()


@pytest.fixture
def settings() -> MemolessSettings:
    return MemolessSettings(
        reference_max_attempts=3,
        reference_initial_delay=0.01,
        reference_max_delay=1.0,
        qr_enabled=False,
    )


@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def recording_sleep(sleeps):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
