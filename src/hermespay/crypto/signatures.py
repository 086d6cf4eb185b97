"""secp256k1 signing and verification over keccak-256 message hashes."""

from __future__ import annotations

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import to_checksum_address

from .encoding import HexOrBytes, hash_message, to_bytes

SIGNATURE_LENGTH = 65
# Signatures carry v as 27/28, which is what the contracts' ecrecover expects.
V_OFFSET = 27


def sign_message(message: bytes, private_key: keys.PrivateKey) -> bytes:
    """Sign keccak(message) and return the 65 byte r || s || v signature."""
    signature = private_key.sign_msg_hash(hash_message(message))
    return (
        signature.r.to_bytes(32, "big")
        + signature.s.to_bytes(32, "big")
        + bytes([signature.v + V_OFFSET])
    )


def recover_signer(message: bytes, signature: HexOrBytes) -> str:
    """Return the checksum address that produced ``signature`` over ``message``.

    Raises ValueError on a malformed signature.
    """
    raw = to_bytes(signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    v = raw[64]
    if v >= V_OFFSET:
        v -= V_OFFSET
    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    try:
        public_key = keys.Signature(vrs=(v, r, s)).recover_public_key_from_msg_hash(
            hash_message(message)
        )
    except (BadSignature, ValidationError) as e:
        raise ValueError(f"Cannot recover signer: {e}") from e
    return public_key.to_checksum_address()


def verify_signature(message: bytes, signature: HexOrBytes, expected_signer: str) -> bool:
    """Check that ``signature`` over ``message`` was made by ``expected_signer``.

    Never raises for bad input; any malformed signature or address is a mismatch.
    """
    try:
        return recover_signer(message, signature) == to_checksum_address(expected_signer)
    except (ValueError, TypeError):
        return False
