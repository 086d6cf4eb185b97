"""Unit tests for promise creation and validation."""

from typing import Callable

import pytest

from hermespay.crypto.encoding import hash_message
from hermespay.crypto.keys import Identity
from hermespay.crypto.promises import (
    create_promise,
    encode_promise,
    generate_promise,
    validate_promise,
)
from hermespay.domain.entities import ChannelState, Promise
from hermespay.domain.errors import SignatureMismatchError

CHANNEL_ID = "0x1111111111111111111111111111111111111111"
HASHLOCK = hash_message(b"\x01" * 32)


def _promise(signer: Identity, amount: int = 100, fee: int = 0) -> Promise:
    return create_promise(1, CHANNEL_ID, amount, fee, HASHLOCK, signer)


class TestCreatePromise:
    """Test create_promise function."""

    def test_hash_covers_canonical_encoding(self, consumer_identity: Identity) -> None:
        promise = _promise(consumer_identity, amount=100, fee=5)
        message = encode_promise(1, CHANNEL_ID, 100, 5, HASHLOCK)
        assert len(message) == 160
        assert promise.hash == hash_message(message)

    def test_fields_are_kept(self, consumer_identity: Identity) -> None:
        promise = create_promise(
            5, CHANNEL_ID, 300, 7, HASHLOCK, consumer_identity, receiver=CHANNEL_ID
        )
        assert promise.chain_id == 5
        assert promise.amount == 300
        assert promise.fee == 7
        assert promise.hashlock == HASHLOCK
        assert promise.identity == CHANNEL_ID

    def test_promise_is_immutable(self, consumer_identity: Identity) -> None:
        promise = _promise(consumer_identity)
        with pytest.raises(Exception):
            promise.amount = 1  # type: ignore[misc]

    def test_promise_serializes_bytes_as_hex(self, consumer_identity: Identity) -> None:
        promise = _promise(consumer_identity)
        dumped = promise.model_dump()
        assert dumped["hashlock"] == "0x" + HASHLOCK.hex()
        assert Promise.model_validate(dumped) == promise


class TestValidatePromise:
    """Test validate_promise function."""

    def test_valid_promise_passes(self, consumer_identity: Identity) -> None:
        validate_promise(_promise(consumer_identity), consumer_identity.address)

    def test_wrong_signer_raises(
        self, consumer_identity: Identity, provider_identity: Identity
    ) -> None:
        with pytest.raises(SignatureMismatchError):
            validate_promise(_promise(consumer_identity), provider_identity.address)

    @pytest.mark.parametrize(
        "changes",
        [
            {"chain_id": 2},
            {"channel_id": "0x2222222222222222222222222222222222222222"},
            {"amount": 101},
            {"fee": 1},
            {"hashlock": hash_message(b"\x02" * 32)},
        ],
    )
    def test_mutated_field_fails(
        self, consumer_identity: Identity, changes: dict
    ) -> None:
        promise = _promise(consumer_identity)
        tampered = promise.model_copy(update=changes)
        with pytest.raises(SignatureMismatchError):
            validate_promise(tampered, consumer_identity.address)

    def test_mutated_field_with_recomputed_hash_fails(
        self, consumer_identity: Identity
    ) -> None:
        promise = _promise(consumer_identity)
        forged_hash = hash_message(encode_promise(1, CHANNEL_ID, 1000, 0, HASHLOCK))
        tampered = promise.model_copy(update={"amount": 1000, "hash": forged_hash})
        with pytest.raises(SignatureMismatchError, match="not signed by"):
            validate_promise(tampered, consumer_identity.address)

    def test_flipped_signature_byte_fails(self, consumer_identity: Identity) -> None:
        promise = _promise(consumer_identity)
        signature = bytearray(promise.signature)
        signature[10] ^= 0xFF
        tampered = promise.model_copy(update={"signature": bytes(signature)})
        with pytest.raises(SignatureMismatchError):
            validate_promise(tampered, consumer_identity.address)


class TestGeneratePromise:
    """Test generate_promise function."""

    def test_amount_builds_on_settled(
        self,
        consumer_identity: Identity,
        deterministic_random: Callable[[int], bytes],
    ) -> None:
        state = ChannelState(channel_id=CHANNEL_ID, settled=40)
        promise = generate_promise(
            50, 10, state, consumer_identity, random_source=deterministic_random
        )
        assert promise.amount == 100
        assert promise.fee == 10

    def test_lock_is_hashlock_preimage(
        self,
        consumer_identity: Identity,
        deterministic_random: Callable[[int], bytes],
    ) -> None:
        state = ChannelState(channel_id=CHANNEL_ID)
        promise = generate_promise(
            10, 0, state, consumer_identity, random_source=deterministic_random
        )
        assert len(promise.lock) == 32
        assert hash_message(promise.lock) == promise.hashlock
        validate_promise(promise, consumer_identity.address)

    def test_requires_channel_id(self, consumer_identity: Identity) -> None:
        with pytest.raises(ValueError, match="no channel id"):
            generate_promise(10, 0, ChannelState(), consumer_identity)
