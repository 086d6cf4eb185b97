"""Call data for the hermes ``settlePromise`` contract method."""

from __future__ import annotations

from typing import Final

from ...crypto.encoding import HexOrBytes, encode_fields, to_bytes, to_hex
from ...crypto.signatures import SIGNATURE_LENGTH

# settlePromise(uint256,uint256,bytes32,bytes32,bytes memory)
SETTLE_PROMISE_SELECTOR: Final[bytes] = bytes.fromhex("8e24280c")

# Five head words precede the dynamic signature bytes.
SIGNATURE_OFFSET: Final[int] = 160
SIGNATURE_FOOTER: Final[bytes] = bytes(31)


def serialise_signature(signature: HexOrBytes) -> bytes:
    """Encode a 65 byte signature as ABI ``bytes memory``: offset, length, data, padding."""
    raw = to_bytes(signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    return (
        encode_fields([("uint256", SIGNATURE_OFFSET), ("uint256", SIGNATURE_LENGTH)])
        + raw
        + SIGNATURE_FOOTER
    )


def construct_settle_payload(
    identity: str,
    amount: int,
    fee: int,
    preimage: HexOrBytes,
    signature: HexOrBytes,
) -> str:
    """0x-hex call data redeeming one promise for ``identity``."""
    head = encode_fields(
        [
            ("word", identity),
            ("uint256", amount),
            ("uint256", fee),
            ("bytes32", preimage),
        ]
    )
    return to_hex(SETTLE_PROMISE_SELECTOR + head + serialise_signature(signature))
