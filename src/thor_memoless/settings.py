"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_BLOCK_TIME_SECONDS,
    MAINNET_ENDPOINTS,
    STAGENET_ENDPOINTS,
    NetworkEndpoints,
)

load_dotenv()


class Network(str, Enum):
    MAINNET = "mainnet"
    STAGENET = "stagenet"


class MemolessSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with THOR_MEMOLESS_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- network ---
    network: Network = Network.MAINNET
    thornode_url: str | None = None
    request_timeout: float = Field(default=10.0, gt=0)
    block_time_seconds: float = Field(default=DEFAULT_BLOCK_TIME_SECONDS, gt=0)

    # --- registration ---
    registration_amount_base_units: int = Field(default=1, ge=0)
    reference_max_attempts: int = Field(default=5, ge=1)
    reference_initial_delay: float | None = Field(
        default=None,
        gt=0,
        description="Delay before the first reference lookup. Defaults to one block interval.",
    )
    reference_max_delay: float = Field(default=60.0, gt=0)

    # --- deposit ---
    inbound_cache_ttl_seconds: float = Field(
        default=120.0,
        gt=0,
        le=600.0,
        description="Inbound addresses rotate; never reuse them for more than a few minutes.",
    )
    global_timeout_seconds: float | None = None

    # --- qr ---
    qr_enabled: bool = True
    qr_box_size: int = Field(default=8, ge=1)
    qr_border: int = Field(default=1, ge=0)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="THOR_MEMOLESS_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_reference_delays(self) -> "MemolessSettings":
        """Validate that the first lookup delay does not exceed the backoff cap."""
        if self.reference_delay > self.reference_max_delay:
            raise ValueError(
                f"reference_initial_delay ({self.reference_delay}) "
                f"must not exceed reference_max_delay ({self.reference_max_delay})"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("THOR_MEMOLESS_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("thor-memoless.toml")
                    user_config = (
                        Path.home() / ".config" / "thor-memoless" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [thor_memoless]
                body = data.get("thor_memoless", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict."""
        data = self.model_dump(mode="json")
        data["thornode_url"] = self.thornode_url_resolved
        return data

    @property
    def endpoints(self) -> NetworkEndpoints:
        network_endpoints_map = {
            Network.MAINNET: MAINNET_ENDPOINTS,
            Network.STAGENET: STAGENET_ENDPOINTS,
        }
        if self.network not in network_endpoints_map:
            raise ValueError(f"Unknown network: {self.network}")
        return network_endpoints_map[self.network]

    @property
    def thornode_url_resolved(self) -> str:
        """THORNode base URL, explicit override first, network default otherwise."""
        url = self.thornode_url or self.endpoints["thornode_url"]
        return url.rstrip("/")

    @property
    def reference_delay(self) -> float:
        """Delay before the first reference lookup (one block by default)."""
        if self.reference_initial_delay is None:
            return self.block_time_seconds
        return self.reference_initial_delay
