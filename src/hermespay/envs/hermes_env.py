from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, field_validator

from ..crypto.keys import compute_address_from_private_key_hex

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Settings(BaseModel):
    """Typed hermes settings built from environment variables."""

    hermes_private_key: str
    hermes_address: str = ZERO_ADDRESS
    chain_id: int = 1

    rpc_url: str = "http://localhost:8545"
    rpc_timeout: float = 10.0
    rpc_retries: int = 3
    hermes_contract_address: str = ZERO_ADDRESS
    registry_address: str = ZERO_ADDRESS
    token_address: str = ZERO_ADDRESS

    api_host: str = "0.0.0.0"
    api_port: int = 8002
    api_debug: bool = False
    api_cors_origins: list[str] = ["*"]

    app_name: str = "HermesPay"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    @field_validator("hermes_private_key")
    @classmethod
    def validate_hermes_private_key(cls, v: str) -> str:
        if not v:
            raise ValueError("Hermes private key cannot be empty")
        try:
            compute_address_from_private_key_hex(v)
        except ValueError as e:
            raise ValueError(f"Invalid hermes private key: {e}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


def get_settings(private_key: Optional[str] = None) -> Settings:
    """Return typed settings sourced from ``HERMES_*`` env vars."""
    hermes_private_key = private_key or os.environ.get("HERMES_PRIVATE_KEY", "")
    hermes_address = (
        compute_address_from_private_key_hex(hermes_private_key)
        if hermes_private_key
        else ZERO_ADDRESS
    )
    return Settings(
        hermes_private_key=hermes_private_key,
        hermes_address=hermes_address,
        chain_id=int(os.environ.get("HERMES_CHAIN_ID", "1")),
        rpc_url=os.environ.get("HERMES_RPC_URL", "http://localhost:8545"),
        rpc_timeout=float(os.environ.get("HERMES_RPC_TIMEOUT", "10")),
        rpc_retries=int(os.environ.get("HERMES_RPC_RETRIES", "3")),
        hermes_contract_address=os.environ.get("HERMES_CONTRACT_ADDRESS", ZERO_ADDRESS),
        registry_address=os.environ.get("HERMES_REGISTRY_ADDRESS", ZERO_ADDRESS),
        token_address=os.environ.get("HERMES_TOKEN_ADDRESS", ZERO_ADDRESS),
        api_host=os.environ.get("HERMES_API_HOST", "0.0.0.0"),
        api_port=int(os.environ.get("HERMES_API_PORT", "8002")),
        api_debug=_env_bool("HERMES_API_DEBUG", "false"),
        api_cors_origins=os.environ.get("HERMES_API_CORS_ORIGINS", "*").split(","),
        app_name=os.environ.get("HERMES_APP_NAME", "HermesPay"),
        app_version=os.environ.get("HERMES_APP_VERSION", "1.0.0"),
        log_level=os.environ.get("HERMES_LOG_LEVEL", "INFO"),
    )
