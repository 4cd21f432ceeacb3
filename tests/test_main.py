import json

import pytest
from typer.testing import CliRunner

from thor_memoless.clients.thornode import ThornodeClient
from thor_memoless.main import app

runner = CliRunner()

MEMO = "=:ETH.ETH:0xabc"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("THOR_MEMOLESS_CONFIG", raising=False)


def test_encode_prints_amount_and_raw_units():
    result = runner.invoke(app, ["--log-level", "ERROR", "encode", "1", "00003"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "encoded_amount": "1.00000003",
        "raw_base_units": "100000003",
    }


def test_encode_with_custom_decimals():
    result = runner.invoke(app, ["encode", "0.001", "7", "--decimals", "6"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["encoded_amount"] == "0.001007"


def test_encode_amount_too_small_exits_nonzero():
    result = runner.invoke(app, ["encode", "0", "00003"])

    assert result.exit_code == 1
    assert "Error" in result.output


@pytest.mark.parametrize(
    "amount,exit_code,expected",
    [("1.00000003", 0, "match"), ("1.00000004", 1, "no match")],
)
def test_check_amount(amount, exit_code, expected):
    result = runner.invoke(app, ["check-amount", amount, "00003"])

    assert result.exit_code == exit_code
    assert result.stdout.strip() == expected


def test_registration_memo():
    result = runner.invoke(app, ["registration-memo", "BTC.BTC", MEMO])

    assert result.exit_code == 0
    assert result.stdout.strip() == f"REFERENCE:BTC.BTC:{MEMO}"


def test_registration_memo_rejects_blank_memo():
    result = runner.invoke(app, ["registration-memo", "BTC.BTC", "  "])

    assert result.exit_code == 1


def test_expiry_with_explicit_height():
    result = runner.invoke(app, ["expiry", "100", "--current-height", "97"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "<1m (3 blocks, 18s)"


def test_show_config_prints_settings():
    result = runner.invoke(app, ["--network", "stagenet", "--show-config"])

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["network"] == "stagenet"
    assert config["thornode_url"] == "https://stagenet-thornode.ninerealms.com"


def test_assets_lists_eligible_pools(api, monkeypatch):
    monkeypatch.setattr(
        ThornodeClient, "from_settings", classmethod(lambda cls, settings: api)
    )

    result = runner.invoke(app, ["assets"])

    assert result.exit_code == 0
    assert "BTC.BTC" in result.stdout
    assert "THOR.RUNE" not in result.stdout


def test_deposit_resumes_and_prints_json(api, monkeypatch):
    api.memo_references["REGTX"] = {
        "asset": "BTC.BTC",
        "memo": MEMO,
        "reference": "00003",
        "height": 900,
    }
    api.memo_checks[("BTC.BTC", "150000003")] = {
        "reference": "00003",
        "memo": MEMO,
        "available": True,
        "expires_at": 5000,
        "usage_count": 0,
        "max_use": 1,
    }
    monkeypatch.setattr(
        ThornodeClient, "from_settings", classmethod(lambda cls, settings: api)
    )
    monkeypatch.setenv("THOR_MEMOLESS_REFERENCE_INITIAL_DELAY", "0.01")
    monkeypatch.setenv("THOR_MEMOLESS_QR_ENABLED", "false")

    result = runner.invoke(
        app,
        ["--log-level", "ERROR", "deposit", "REGTX", "1.5", "--memo", MEMO, "--json"],
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["instruction"]["encoded_amount"] == "1.50000003"
    assert data["instruction"]["qr_payload"] == "bitcoin:bc1qinbound?amount=1.50000003"
    assert data["registration"]["reference_id"] == "00003"
    assert data["expiry"]["blocks_remaining"] == 4000


def test_deposit_reports_audit_mismatch(api, monkeypatch):
    api.memo_references["REGTX"] = {
        "asset": "BTC.BTC",
        "memo": MEMO,
        "reference": "00003",
    }
    api.memo_checks[("BTC.BTC", "150000003")] = {"reference": "00004", "memo": MEMO}
    monkeypatch.setattr(
        ThornodeClient, "from_settings", classmethod(lambda cls, settings: api)
    )
    monkeypatch.setenv("THOR_MEMOLESS_REFERENCE_INITIAL_DELAY", "0.01")

    result = runner.invoke(app, ["--log-level", "CRITICAL", "deposit", "REGTX", "1.5"])

    assert result.exit_code == 1
    assert "Reference mismatch" in result.output
