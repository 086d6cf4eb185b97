"""Tests for hermes settings."""

import pytest
from pydantic import ValidationError

from hermespay.envs.hermes_env import ZERO_ADDRESS, Settings, get_settings

HERMES_KEY = "0x" + (3).to_bytes(32, "big").hex()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in [
        "HERMES_PRIVATE_KEY",
        "HERMES_CHAIN_ID",
        "HERMES_RPC_URL",
        "HERMES_RPC_RETRIES",
        "HERMES_API_PORT",
        "HERMES_API_DEBUG",
        "HERMES_API_CORS_ORIGINS",
        "HERMES_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("HERMES_PRIVATE_KEY", HERMES_KEY)

    settings = get_settings()

    assert settings.chain_id == 1
    assert settings.api_port == 8002
    assert settings.api_debug is False
    assert settings.api_cors_origins == ["*"]
    assert settings.registry_address == ZERO_ADDRESS
    assert settings.hermes_address != ZERO_ADDRESS


def test_reads_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("HERMES_CHAIN_ID", "5")
    clean_env.setenv("HERMES_RPC_URL", "http://node:8545")
    clean_env.setenv("HERMES_RPC_RETRIES", "7")
    clean_env.setenv("HERMES_API_DEBUG", "TRUE")
    clean_env.setenv("HERMES_API_CORS_ORIGINS", "http://a,http://b")
    clean_env.setenv("HERMES_LOG_LEVEL", "debug")

    settings = get_settings(private_key=HERMES_KEY)

    assert settings.chain_id == 5
    assert settings.rpc_url == "http://node:8545"
    assert settings.rpc_retries == 7
    assert settings.api_debug is True
    assert settings.api_cors_origins == ["http://a", "http://b"]
    assert settings.log_level == "DEBUG"


def test_missing_private_key(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValidationError, match="cannot be empty"):
        get_settings()


def test_invalid_private_key() -> None:
    with pytest.raises(ValidationError, match="Invalid hermes private key"):
        Settings(hermes_private_key="0x1234")


def test_invalid_log_level() -> None:
    with pytest.raises(ValidationError, match="Unknown log level"):
        Settings(hermes_private_key=HERMES_KEY, log_level="LOUD")
