"""Unit tests for secp256k1 signing and verification."""

from hermespay.crypto.keys import Identity
from hermespay.crypto.signatures import recover_signer, sign_message, verify_signature

import pytest

KEY_ONE = "0x" + "00" * 31 + "01"
KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"


def test_identity_address_from_known_key() -> None:
    assert Identity.from_hex(KEY_ONE).address == KEY_ONE_ADDRESS


def test_signature_is_65_bytes_with_v_27_or_28() -> None:
    identity = Identity.from_hex(KEY_ONE)
    signature = identity.sign(b"hello")
    assert len(signature) == 65
    assert signature[64] in (27, 28)


def test_recover_signer_returns_signing_address() -> None:
    identity = Identity.from_hex(KEY_ONE)
    signature = identity.sign(b"hello")
    assert recover_signer(b"hello", signature) == identity.address


def test_verify_accepts_hex_signature(consumer_identity: Identity) -> None:
    signature = consumer_identity.sign(b"payload")
    assert verify_signature(b"payload", "0x" + signature.hex(), consumer_identity.address)


def test_verify_rejects_other_signer(
    consumer_identity: Identity, provider_identity: Identity
) -> None:
    signature = consumer_identity.sign(b"payload")
    assert not verify_signature(b"payload", signature, provider_identity.address)


def test_verify_rejects_mutated_message(consumer_identity: Identity) -> None:
    message = b"\x00" * 64
    signature = consumer_identity.sign(message)
    for index in range(len(message)):
        mutated = bytearray(message)
        mutated[index] ^= 0x01
        assert not verify_signature(bytes(mutated), signature, consumer_identity.address)


@pytest.mark.parametrize(
    "signature",
    [b"", b"\x01" * 64, b"\x01" * 66, b"\x00" * 65, b"\xff" * 64 + b"\x63", "0xnothex"],
)
def test_verify_returns_false_on_malformed_signature(
    consumer_identity: Identity, signature: object
) -> None:
    assert verify_signature(b"payload", signature, consumer_identity.address) is False  # type: ignore[arg-type]


def test_verify_returns_false_on_bad_expected_address(consumer_identity: Identity) -> None:
    signature = consumer_identity.sign(b"payload")
    assert verify_signature(b"payload", signature, "not-an-address") is False


def test_sign_message_is_deterministic(consumer_identity: Identity) -> None:
    # RFC 6979 nonces: same key and message give the same signature.
    assert consumer_identity.sign(b"x") == consumer_identity.sign(b"x")


def test_generate_uses_random_source() -> None:
    seed = b"\x42" * 32
    identity = Identity.generate(lambda size: seed[:size])
    assert identity.address == Identity.from_hex(seed).address


def test_from_hex_rejects_invalid_key() -> None:
    with pytest.raises(ValueError):
        Identity.from_hex("0x1234")


def test_sign_message_function_matches_identity(consumer_identity: Identity) -> None:
    from eth_keys import keys

    private_key = keys.PrivateKey(bytes.fromhex(KEY_ONE[2:]))
    assert sign_message(b"m", private_key) == Identity.from_hex(KEY_ONE).sign(b"m")
