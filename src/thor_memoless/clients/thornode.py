"""THORNode REST client for pools, memo registrations and inbound addresses."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import requests

from ..constants import HOME_CHAIN_HEIGHT_KEY
from ..errors import TransientNetworkError
from ..settings import MemolessSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ThornodeClient:
    """Client for the THORNode API using the requests library.

    Calls run in a worker thread so the flow stays non-blocking. Nothing is
    retried here: timeouts, connection failures and retryable statuses are
    raised as TransientNetworkError and the caller decides.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Content-Type", "application/json")

    @classmethod
    def from_settings(cls, settings: MemolessSettings) -> "ThornodeClient":
        return cls(settings.thornode_url_resolved, timeout=settings.request_timeout)

    def _get_sync(self, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("Calling %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientNetworkError(f"THORNode unreachable at {url}: {e}") from e

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientNetworkError(
                f"THORNode returned {response.status_code} for {url}"
            )
        return response

    async def _get(self, path: str) -> requests.Response:
        return await asyncio.to_thread(self._get_sync, path)

    async def _get_json(self, path: str) -> Any:
        response = await self._get(path)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise ValueError(f"Invalid JSON from THORNode for {path}") from e

    async def get_pools(self) -> list[dict[str, Any]]:
        data = await self._get_json("/thorchain/pools")
        if not isinstance(data, list):
            raise ValueError(f"Unexpected pools payload: {data!r}")
        return data

    async def get_memo_reference(self, tx_id: str) -> dict[str, Any] | None:
        """Fetch the memo registration recorded by ``tx_id``.

        Returns None while the registration is not indexed yet (404 or an
        empty reference).
        """
        response = await self._get(f"/thorchain/memo/{quote(tx_id, safe='')}")
        if response.status_code == 404:
            logger.debug("Registration %s not indexed yet", tx_id)
            return None
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict) or not data.get("reference"):
            return None
        return data

    async def check_memo(self, asset_id: str, raw_amount: str) -> dict[str, Any]:
        data = await self._get_json(
            f"/thorchain/memo/check/{quote(asset_id, safe='')}/{quote(raw_amount, safe='')}"
        )
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected memo check payload: {data!r}")
        return data

    async def get_inbound_addresses(self) -> list[dict[str, Any]]:
        data = await self._get_json("/thorchain/inbound_addresses")
        if not isinstance(data, list):
            raise ValueError(f"Unexpected inbound addresses payload: {data!r}")
        return data

    async def get_current_height(self) -> int:
        data = await self._get_json(f"/thorchain/lastblock/{HOME_CHAIN_HEIGHT_KEY}")
        entries = data if isinstance(data, list) else [data]
        for entry in entries:
            if isinstance(entry, dict) and entry.get("thorchain") is not None:
                return int(entry["thorchain"])
        raise ValueError(f"No thorchain height in lastblock payload: {data!r}")
