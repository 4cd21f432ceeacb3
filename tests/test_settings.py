"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import ValidationError

from thor_memoless.settings import MemolessSettings, Network


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in (
        "THOR_MEMOLESS_CONFIG",
        "THOR_MEMOLESS_NETWORK",
        "THOR_MEMOLESS_THORNODE_URL",
        "THOR_MEMOLESS_REFERENCE_MAX_ATTEMPTS",
        "THOR_MEMOLESS_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    settings = MemolessSettings()

    assert settings.network is Network.MAINNET
    assert settings.thornode_url_resolved == "https://thornode.ninerealms.com"
    assert settings.reference_delay == settings.block_time_seconds == 6.0
    assert settings.reference_max_attempts == 5
    assert settings.inbound_cache_ttl_seconds == 120.0


def test_stagenet_endpoint():
    settings = MemolessSettings(network="stagenet")

    assert settings.thornode_url_resolved == "https://stagenet-thornode.ninerealms.com"


def test_explicit_url_overrides_network_and_strips_slash():
    settings = MemolessSettings(thornode_url="http://localhost:1317/")

    assert settings.thornode_url_resolved == "http://localhost:1317"
    assert settings.as_safe_dict()["thornode_url"] == "http://localhost:1317"


def test_config_file_table_is_loaded(tmp_path, monkeypatch):
    config_path = tmp_path / "custom.toml"
    config_path.write_text(
        dedent(
            """
            [thor_memoless]
            network = "stagenet"
            reference_max_attempts = 8
            reference_initial_delay = 2.5
            qr_enabled = false
            """
        ).strip()
    )
    monkeypatch.setenv("THOR_MEMOLESS_CONFIG", str(config_path))

    settings = MemolessSettings()

    assert settings.network is Network.STAGENET
    assert settings.reference_max_attempts == 8
    assert settings.reference_delay == 2.5
    assert settings.qr_enabled is False


def test_local_config_file_discovered(tmp_path):
    (tmp_path / "thor-memoless.toml").write_text("reference_max_attempts = 2\n")

    assert MemolessSettings().reference_max_attempts == 2


def test_precedence_cli_over_env_over_file(tmp_path, monkeypatch):
    (tmp_path / "thor-memoless.toml").write_text(
        'reference_max_attempts = 2\nlog_level = "DEBUG"\nnetwork = "stagenet"\n'
    )
    monkeypatch.setenv("THOR_MEMOLESS_REFERENCE_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("THOR_MEMOLESS_LOG_LEVEL", "WARNING")

    settings = MemolessSettings(log_level="ERROR")

    assert settings.log_level == "ERROR"
    assert settings.reference_max_attempts == 4
    assert settings.network is Network.STAGENET


def test_initial_delay_cannot_exceed_cap():
    with pytest.raises(ValidationError, match="must not exceed"):
        MemolessSettings(reference_initial_delay=90, reference_max_delay=60)


def test_cache_ttl_is_bounded():
    with pytest.raises(ValidationError):
        MemolessSettings(inbound_cache_ttl_seconds=3600)


def test_attempts_must_be_positive():
    with pytest.raises(ValidationError):
        MemolessSettings(reference_max_attempts=0)
