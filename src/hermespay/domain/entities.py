"""Payment-channel domain entities: ChannelState, Invoice, Promise and ExchangeMessage."""

from __future__ import annotations

from typing import Dict, Optional, Set

from eth_utils import to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..crypto.encoding import to_bytes, to_hex


def normalize_channel_id(value: str | bytes) -> str:
    """Channel ids are either channel contract addresses or 32 byte ids."""
    raw = to_bytes(value)
    if len(raw) == 20:
        return to_checksum_address(raw)
    if len(raw) == 32:
        return to_hex(raw)
    raise ValueError(f"Channel id must be 20 or 32 bytes, got {len(raw)}")


def _bytes_field(value: object) -> object:
    if isinstance(value, str):
        return to_bytes(value)
    return value


class ChannelState(BaseModel):
    """Off-chain mirror of one channel's ledger."""

    channel_id: Optional[str] = None
    settled: int = Field(default=0, ge=0)
    balance: int = Field(default=0, ge=0)
    promised: int = Field(default=0, ge=0)
    agreements: Dict[int, int] = Field(default_factory=dict)
    relayed_hashlocks: Set[bytes] = Field(
        default_factory=set, description="Hashlocks already relayed from this channel"
    )

    @field_validator("channel_id", mode="before")
    @classmethod
    def validate_channel_id(cls, value: object) -> object:
        if value is None:
            return None
        return normalize_channel_id(value)  # type: ignore[arg-type]

    @field_validator("relayed_hashlocks", mode="before")
    @classmethod
    def validate_relayed_hashlocks(cls, value: object) -> object:
        if isinstance(value, (list, set, tuple)):
            return {_bytes_field(item) for item in value}
        return value

    @field_serializer("relayed_hashlocks")
    def serialize_relayed_hashlocks(self, value: Set[bytes]) -> list[str]:
        return sorted(to_hex(item) for item in value)

    def agreement_total(self, agreement_id: int) -> int:
        """Amount already covered under ``agreement_id``; unseen agreements cover 0."""
        return self.agreements.get(agreement_id, 0)

    def has_agreement(self, agreement_id: int) -> bool:
        return agreement_id in self.agreements


class PaymentRequest(BaseModel):
    """The part of an invoice that is sent to the payer."""

    model_config = ConfigDict(frozen=True)

    hashlock: bytes
    agreement_id: int = Field(..., ge=1)
    agreement_total: int = Field(..., ge=0)
    fee: int = Field(default=0, ge=0)

    @field_validator("hashlock", mode="before")
    @classmethod
    def validate_hashlock(cls, value: object) -> object:
        return _bytes_field(value)

    @field_serializer("hashlock")
    def serialize_hashlock(self, value: bytes) -> str:
        return to_hex(value)


class Invoice(PaymentRequest):
    """Provider-side invoice. The preimage stays with the provider until settlement."""

    preimage: bytes = Field(..., repr=False, exclude=True)

    @field_validator("preimage", mode="before")
    @classmethod
    def validate_preimage(cls, value: object) -> object:
        return _bytes_field(value)

    def to_payment_request(self) -> PaymentRequest:
        return PaymentRequest(
            hashlock=self.hashlock,
            agreement_id=self.agreement_id,
            agreement_total=self.agreement_total,
            fee=self.fee,
        )


class Promise(BaseModel):
    """A signed claim on a channel's cumulative amount, locked by a hashlock."""

    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., ge=0)
    channel_id: str
    amount: int = Field(..., ge=0)
    fee: int = Field(default=0, ge=0)
    hashlock: bytes
    hash: bytes
    signature: bytes
    identity: Optional[str] = Field(
        default=None, description="Receiver identity the promise is routed to"
    )

    @field_validator("channel_id", mode="before")
    @classmethod
    def validate_channel_id(cls, value: object) -> object:
        return normalize_channel_id(value)  # type: ignore[arg-type]

    @field_validator("hashlock", "hash", "signature", mode="before")
    @classmethod
    def validate_bytes(cls, value: object) -> object:
        return _bytes_field(value)

    @field_validator("identity")
    @classmethod
    def validate_identity(cls, value: Optional[str]) -> Optional[str]:
        return to_checksum_address(value) if value else value

    @field_serializer("hashlock", "hash", "signature")
    def serialize_bytes(self, value: bytes) -> str:
        return to_hex(value)


class LockedPromise(Promise):
    """Promise returned together with the preimage of its hashlock."""

    lock: bytes = Field(..., repr=False)

    @field_validator("lock", mode="before")
    @classmethod
    def validate_lock(cls, value: object) -> object:
        return _bytes_field(value)

    @field_serializer("lock")
    def serialize_lock(self, value: bytes) -> str:
        return to_hex(value)


class ExchangeMessage(BaseModel):
    """Payer-signed binding of a promise to an agreement and a receiving party."""

    model_config = ConfigDict(frozen=True)

    promise: Promise
    agreement_id: int = Field(..., ge=1)
    agreement_total: int = Field(..., ge=0)
    party: str
    hash: bytes
    signature: bytes

    @field_validator("party")
    @classmethod
    def validate_party(cls, value: str) -> str:
        return to_checksum_address(value)

    @field_validator("hash", "signature", mode="before")
    @classmethod
    def validate_bytes(cls, value: object) -> object:
        return _bytes_field(value)

    @field_serializer("hash", "signature")
    def serialize_bytes(self, value: bytes) -> str:
        return to_hex(value)
