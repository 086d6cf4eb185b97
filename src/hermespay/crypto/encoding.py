"""Canonical byte encoding of protocol fields.

Every signed message in the protocol is the tightly packed concatenation of
its fields, hashed with keccak-256. The verifying contracts rebuild the same
bytes, so field order and width must match exactly.
"""

from __future__ import annotations

from typing import Any, Iterable, Literal, Tuple, Union

from eth_abi.packed import encode_packed
from eth_utils import keccak, to_checksum_address

FieldKind = Literal["uint256", "word", "address", "bytes32", "bytes", "string"]
Field = Tuple[FieldKind, Any]

HexOrBytes = Union[str, bytes]

WORD_SIZE = 32
UINT256_MAX = (1 << 256) - 1


def to_bytes(value: HexOrBytes) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raw = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(raw)
    except ValueError as e:
        raise ValueError(f"Expected hex string, got {value!r}") from e


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def left_pad_word(value: HexOrBytes) -> bytes:
    """Left-zero-pad an address or channel id to a 32 byte word."""
    raw = to_bytes(value)
    if len(raw) > WORD_SIZE:
        raise ValueError(f"Value of {len(raw)} bytes does not fit a 32 byte word")
    return raw.rjust(WORD_SIZE, b"\x00")


def _normalize(kind: FieldKind, value: Any) -> Tuple[str, Any]:
    if kind == "uint256":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"uint256 field expects int, got {type(value).__name__}")
        if value < 0 or value > UINT256_MAX:
            raise ValueError(f"uint256 field out of range: {value}")
        return "uint256", value
    if kind == "word":
        return "bytes32", left_pad_word(value)
    if kind == "address":
        if isinstance(value, (bytes, bytearray)):
            value = to_hex(bytes(value))
        return "address", to_checksum_address(value)
    if kind == "bytes32":
        raw = to_bytes(value)
        if len(raw) != WORD_SIZE:
            raise ValueError(f"bytes32 field expects 32 bytes, got {len(raw)}")
        return "bytes32", raw
    if kind == "bytes":
        return "bytes", to_bytes(value)
    if kind == "string":
        return "bytes", value.encode("ascii") if isinstance(value, str) else bytes(value)
    raise ValueError(f"Unknown field kind: {kind}")


def encode_fields(fields: Iterable[Field]) -> bytes:
    """Pack an ordered list of typed fields into the exact signed byte string."""
    types = []
    values = []
    for kind, value in fields:
        abi_type, normalized = _normalize(kind, value)
        types.append(abi_type)
        values.append(normalized)
    return encode_packed(types, values)


def hash_message(message: bytes) -> bytes:
    """keccak-256 of the packed message."""
    return keccak(message)
