"""THORChain network and protocol constants."""

from typing import TypedDict


class NetworkEndpoints(TypedDict):
    thornode_url: str
    address_prefix: str


MAINNET_ENDPOINTS: NetworkEndpoints = {
    "thornode_url": "https://thornode.ninerealms.com",
    "address_prefix": "thor",
}

STAGENET_ENDPOINTS: NetworkEndpoints = {
    "thornode_url": "https://stagenet-thornode.ninerealms.com",
    "address_prefix": "sthor",
}

# Chain segment of the home ledger; its assets accept memos natively.
HOME_CHAIN = "THOR"
HOME_CHAIN_HEIGHT_KEY = "THORCHAIN"
RUNE_ASSET = "THOR.RUNE"

# THORNode reports pool balances, prices and dust thresholds at 1e8.
THORNODE_DECIMALS = 8
DEFAULT_ASSET_DECIMALS = 8

DEFAULT_BLOCK_TIME_SECONDS = 6.0

REGISTRATION_MEMO_PREFIX = "REFERENCE"

POOL_STATUS_AVAILABLE = "available"
