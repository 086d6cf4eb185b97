from __future__ import annotations

import secrets
from typing import Callable

from eth_keys import keys
from eth_keys.exceptions import ValidationError

from .encoding import HexOrBytes, to_bytes
from .signatures import sign_message, verify_signature

# Callable returning ``n`` random bytes. Injected wherever preimages or keys
# are drawn so tests can make them deterministic.
RandomSource = Callable[[int], bytes]

default_random_source: RandomSource = secrets.token_bytes


class Identity:
    """A secp256k1 key pair identified by its Ethereum-style address."""

    def __init__(self, private_key: keys.PrivateKey) -> None:
        self._private_key = private_key
        self.address: str = private_key.public_key.to_checksum_address()

    @classmethod
    def from_hex(cls, private_key_hex: HexOrBytes) -> "Identity":
        try:
            return cls(keys.PrivateKey(to_bytes(private_key_hex)))
        except ValidationError as e:
            raise ValueError(f"Invalid private key: {e}") from e

    @classmethod
    def generate(cls, random_source: RandomSource = default_random_source) -> "Identity":
        while True:
            try:
                return cls(keys.PrivateKey(random_source(32)))
            except ValidationError:
                # Out of curve order, draw again.
                continue

    @property
    def public_key(self) -> bytes:
        return self._private_key.public_key.to_bytes()

    def sign(self, message: bytes) -> bytes:
        return sign_message(message, self._private_key)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return verify_signature(message, signature, self.address)

    def __repr__(self) -> str:
        return f"Identity({self.address})"


def compute_address_from_private_key_hex(private_key_hex: str) -> str:
    return Identity.from_hex(private_key_hex).address
