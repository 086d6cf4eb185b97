"""Data Transfer Objects for the hermes application layer."""

from __future__ import annotations

from typing import Dict

from eth_utils import to_checksum_address
from pydantic import BaseModel, ConfigDict, field_validator

from ...domain.entities import ExchangeMessage


class ExchangePromiseDTO(BaseModel):
    """DTO for relaying an exchange message through hermes."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "exchange_message": {"...": "ExchangeMessage"},
                "payer": "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf",
                "receiver": "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF",
            }
        }
    )

    exchange_message: ExchangeMessage
    payer: str
    receiver: str

    @field_validator("payer", "receiver")
    @classmethod
    def validate_address(cls, value: str) -> str:
        return to_checksum_address(value)


class ChannelStateResponseDTO(BaseModel):
    """DTO for returning a cached channel state."""

    channel_id: str
    settled: int
    balance: int
    promised: int
    agreements: Dict[int, int]


class HermesPublicKeyDTO(BaseModel):
    """DTO exposing the address hermes signs promises with."""

    address: str
    public_key: str


class ProtocolErrorDTO(BaseModel):
    """Body returned when a protocol check fails."""

    error: str
    detail: str
