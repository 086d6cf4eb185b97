"""Authorization messages consumed by the registry, channel and hermes contracts.

Each message is a fixed field list over the canonical encoder, optionally
prefixed with an ASCII domain separator. Every signer verifies its own
signature before returning it.
"""

from __future__ import annotations

import threading
from typing import Dict, Hashable, Tuple

from pydantic import BaseModel, field_serializer, field_validator

from ..domain.errors import NonceReuseError, SignatureMismatchError, SigningError
from .encoding import Field, encode_fields, to_bytes, to_hex
from .keys import Identity
from .signatures import verify_signature

EXIT_REQUEST_PREFIX = "Exit request:"
STAKE_RETURN_PREFIX = "Stake return request"
STAKE_GOAL_UPDATE_PREFIX = "Stake goal update request"

# Identity registration and consumer channel opening are always signed for chain 1.
REGISTRATION_CHAIN_ID = 1


class ExitRequest(BaseModel):
    """Signed request to withdraw all channel funds to a beneficiary."""

    channel_id: str
    beneficiary: str
    valid_until: int
    signature: bytes

    @field_validator("signature", mode="before")
    @classmethod
    def validate_signature(cls, value: object) -> object:
        return to_bytes(value) if isinstance(value, str) else value

    @field_serializer("signature")
    def serialize_signature(self, value: bytes) -> str:
        return to_hex(value)


class FastWithdrawal(BaseModel):
    """Withdrawal signed by both the channel identity and its hermes."""

    chain_id: int
    channel_id: str
    amount: int
    fee: int
    beneficiary: str
    valid_until: int
    nonce: int
    identity_signature: bytes
    hermes_signature: bytes

    @field_validator("identity_signature", "hermes_signature", mode="before")
    @classmethod
    def validate_signatures(cls, value: object) -> object:
        return to_bytes(value) if isinstance(value, str) else value

    @field_serializer("identity_signature", "hermes_signature")
    def serialize_signatures(self, value: bytes) -> str:
        return to_hex(value)


class NonceTracker:
    """Remembers the last nonce used per (signer, scope) and rejects reuse.

    Nonces must strictly increase, which is what the contracts enforce on
    their side too.
    """

    def __init__(self) -> None:
        self._last: Dict[Tuple[str, Hashable], int] = {}
        self._lock = threading.Lock()

    def last(self, signer: str, scope: Hashable) -> int:
        with self._lock:
            return self._last.get((signer, scope), 0)

    def next(self, signer: str, scope: Hashable) -> int:
        with self._lock:
            return self._last.get((signer, scope), 0) + 1

    def use(self, signer: str, scope: Hashable, nonce: int) -> None:
        with self._lock:
            last = self._last.get((signer, scope))
            if last is not None and nonce <= last:
                raise NonceReuseError(
                    f"Nonce {nonce} for {signer} on {scope} must be greater than {last}"
                )
            self._last[(signer, scope)] = nonce


def _sign(fields: list[Field], signer: Identity) -> bytes:
    message = encode_fields(fields)
    signature = signer.sign(message)
    if not verify_signature(message, signature, signer.address):
        raise SigningError(f"Signature by {signer.address} does not verify")
    return signature


def exit_request_fields(channel_address: str, beneficiary: str, valid_until: int) -> list[Field]:
    return [
        ("string", EXIT_REQUEST_PREFIX),
        ("address", channel_address),
        ("address", beneficiary),
        ("uint256", valid_until),
    ]


def sign_exit_request(
    channel_address: str, beneficiary: str, valid_until: int, operator: Identity
) -> ExitRequest:
    signature = _sign(exit_request_fields(channel_address, beneficiary, valid_until), operator)
    return ExitRequest(
        channel_id=channel_address,
        beneficiary=beneficiary,
        valid_until=valid_until,
        signature=signature,
    )


def verify_exit_request(request: ExitRequest, operator: str) -> None:
    message = encode_fields(
        exit_request_fields(request.channel_id, request.beneficiary, request.valid_until)
    )
    if not verify_signature(message, request.signature, operator):
        raise SignatureMismatchError(f"Exit request is not signed by {operator}")


def fast_withdrawal_fields(
    chain_id: int,
    channel_id: str,
    amount: int,
    fee: int,
    beneficiary: str,
    valid_until: int,
    nonce: int,
) -> list[Field]:
    return [
        ("string", EXIT_REQUEST_PREFIX),
        ("uint256", chain_id),
        ("word", channel_id),
        ("uint256", amount),
        ("uint256", fee),
        ("word", beneficiary),
        ("uint256", valid_until),
        ("uint256", nonce),
    ]


def sign_fast_withdrawal(
    chain_id: int,
    channel_id: str,
    amount: int,
    fee: int,
    beneficiary: str,
    valid_until: int,
    nonce: int,
    identity: Identity,
    hermes: Identity,
    nonces: NonceTracker | None = None,
) -> FastWithdrawal:
    fields = fast_withdrawal_fields(
        chain_id, channel_id, amount, fee, beneficiary, valid_until, nonce
    )
    identity_signature = _sign(fields, identity)
    hermes_signature = _sign(fields, hermes)
    if nonces is not None:
        nonces.use(identity.address, ("withdrawal", channel_id), nonce)
    return FastWithdrawal(
        chain_id=chain_id,
        channel_id=channel_id,
        amount=amount,
        fee=fee,
        beneficiary=beneficiary,
        valid_until=valid_until,
        nonce=nonce,
        identity_signature=identity_signature,
        hermes_signature=hermes_signature,
    )


def verify_fast_withdrawal(withdrawal: FastWithdrawal, identity: str, hermes: str) -> None:
    """Both the identity and the hermes signature must verify independently."""
    message = encode_fields(
        fast_withdrawal_fields(
            withdrawal.chain_id,
            withdrawal.channel_id,
            withdrawal.amount,
            withdrawal.fee,
            withdrawal.beneficiary,
            withdrawal.valid_until,
            withdrawal.nonce,
        )
    )
    if not verify_signature(message, withdrawal.identity_signature, identity):
        raise SignatureMismatchError(f"Fast withdrawal is not signed by identity {identity}")
    if not verify_signature(message, withdrawal.hermes_signature, hermes):
        raise SignatureMismatchError(f"Fast withdrawal is not signed by hermes {hermes}")


def sign_channel_beneficiary_change(
    chain_id: int,
    registry_address: str,
    new_beneficiary: str,
    registry_nonce: int,
    identity: Identity,
    nonces: NonceTracker | None = None,
) -> bytes:
    signature = _sign(
        [
            ("uint256", chain_id),
            ("address", registry_address),
            ("address", identity.address),
            ("address", new_beneficiary),
            ("uint256", registry_nonce),
        ],
        identity,
    )
    if nonces is not None:
        nonces.use(identity.address, ("registry", registry_address), registry_nonce)
    return signature


def sign_pay_and_settle_beneficiary(
    chain_id: int,
    channel_id: str,
    amount: int,
    preimage: bytes,
    beneficiary: str,
    identity: Identity,
) -> bytes:
    return _sign(
        [
            ("uint256", chain_id),
            ("word", channel_id),
            ("uint256", amount),
            ("bytes32", preimage),
            ("address", beneficiary),
        ],
        identity,
    )


def sign_stake_return_request(
    channel_id: str,
    amount: int,
    fee: int,
    channel_nonce: int,
    identity: Identity,
    chain_id: int = 1,
    nonces: NonceTracker | None = None,
) -> bytes:
    signature = _sign(
        [
            ("string", STAKE_RETURN_PREFIX),
            ("uint256", chain_id),
            ("address", channel_id),
            ("uint256", amount),
            ("uint256", fee),
            ("uint256", channel_nonce),
        ],
        identity,
    )
    if nonces is not None:
        nonces.use(identity.address, ("channel", channel_id), channel_nonce)
    return signature


def sign_identity_registration(
    registry_address: str,
    hermes_id: str,
    stake: int,
    fee: int,
    beneficiary: str,
    identity: Identity,
) -> bytes:
    return _sign(
        [
            ("uint256", REGISTRATION_CHAIN_ID),
            ("address", registry_address),
            ("address", hermes_id),
            ("uint256", stake),
            ("uint256", fee),
            ("address", beneficiary),
        ],
        identity,
    )


def sign_consumer_channel_opening(
    registry_address: str, hermes_id: str, fee: int, identity: Identity
) -> bytes:
    return _sign(
        [
            ("uint256", REGISTRATION_CHAIN_ID),
            ("address", registry_address),
            ("address", hermes_id),
            ("uint256", fee),
        ],
        identity,
    )


def sign_stake_goal_update(
    chain_id: int,
    channel_id: str,
    stake_goal: int,
    channel_nonce: int,
    identity: Identity,
    nonces: NonceTracker | None = None,
) -> bytes:
    signature = _sign(
        [
            ("string", STAKE_GOAL_UPDATE_PREFIX),
            ("uint256", chain_id),
            ("address", channel_id),
            ("uint256", stake_goal),
            ("uint256", channel_nonce),
        ],
        identity,
    )
    if nonces is not None:
        nonces.use(identity.address, ("channel", channel_id), channel_nonce)
    return signature


def sign_url_update(
    registry_address: str,
    hermes_id: str,
    url: str,
    nonce: int,
    identity: Identity,
    nonces: NonceTracker | None = None,
) -> bytes:
    signature = _sign(
        [
            ("address", registry_address),
            ("address", hermes_id),
            ("bytes", url.encode("utf-8")),
            ("uint256", nonce),
        ],
        identity,
    )
    if nonces is not None:
        nonces.use(identity.address, ("url", hermes_id), nonce)
    return signature
