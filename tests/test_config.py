"""
Tests for environment loading and startup validation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from backend_riskoracle.config import get_settings
from backend_riskoracle.config.env import (
    describe_startup,
    get_chain_id,
    parse_bool_env,
    validate_blockchain_env,
    validate_reader_env,
)
from backend_riskoracle.core.exceptions import ConfigError

CONTRACT = "0x" + "ab" * 20
PRIVATE_KEY = "0x" + "11" * 32


@pytest.fixture
def chain_env(monkeypatch):
    monkeypatch.setenv("RPC_URL", "https://rpc.example.org/v1?api-key=secret")
    monkeypatch.setenv("CONTRACT_ADDRESS", CONTRACT)
    monkeypatch.setenv("PRIVATE_KEY", PRIVATE_KEY)
    monkeypatch.delenv("CHAIN_ID", raising=False)
    monkeypatch.delenv("DRY_RUN", raising=False)


def test_valid_blockchain_env(chain_env):
    validate_reader_env()
    validate_blockchain_env()


def test_missing_vars_listed(chain_env, monkeypatch):
    monkeypatch.delenv("PRIVATE_KEY")
    monkeypatch.delenv("RPC_URL")
    with pytest.raises(ConfigError) as exc_info:
        validate_blockchain_env()
    assert "PRIVATE_KEY" in str(exc_info.value)
    assert "RPC_URL" in str(exc_info.value)
    # reads only need RPC_URL + CONTRACT_ADDRESS
    monkeypatch.setenv("RPC_URL", "http://localhost:8545")
    validate_reader_env()


@pytest.mark.parametrize("address", ["0x1234", "ab" * 20, "0x" + "zz" * 20])
def test_malformed_contract_address(chain_env, monkeypatch, address):
    monkeypatch.setenv("CONTRACT_ADDRESS", address)
    with pytest.raises(ConfigError):
        validate_reader_env()


@pytest.mark.parametrize("key", ["11" * 32, "0x" + "11" * 31, "0x" + "g1" * 32])
def test_malformed_private_key(chain_env, monkeypatch, key):
    monkeypatch.setenv("PRIVATE_KEY", key)
    with pytest.raises(ConfigError):
        validate_blockchain_env()


def test_chain_id(monkeypatch):
    monkeypatch.setenv("CHAIN_ID", "11155111")
    assert get_chain_id() == 11155111
    monkeypatch.setenv("CHAIN_ID", "sepolia")
    with pytest.raises(ConfigError):
        get_chain_id()


def test_parse_bool_env(monkeypatch):
    monkeypatch.setenv("DRY_RUN", "yes")
    assert parse_bool_env("DRY_RUN") is True
    monkeypatch.setenv("DRY_RUN", "off")
    assert parse_bool_env("DRY_RUN", True) is False
    monkeypatch.setenv("DRY_RUN", "maybe")
    assert parse_bool_env("DRY_RUN", True) is True


def test_settings_redacts_key(chain_env, monkeypatch, tmp_path):
    monkeypatch.setenv("DB_PATH", str(tmp_path / "x.db"))
    settings = get_settings()
    assert settings.db_path == Path(tmp_path / "x.db")
    assert settings.has_signer
    redacted = settings.redacted()
    assert PRIVATE_KEY not in str(redacted)
    assert redacted["has_signer"] is True


def test_describe_startup_masks_api_key(chain_env):
    info = describe_startup("push_tiers")
    assert "secret" not in info["rpc"]
    assert info["contract"] == CONTRACT
