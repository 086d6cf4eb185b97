"""Promise construction and validation.

A promise is a signature over

    chainId (uint256) || channelId (word) || amount (uint256) || fee (uint256) || hashlock (bytes32)

and commits the signer to release ``amount`` in total from the channel to
whoever reveals the preimage of ``hashlock``.
"""

from __future__ import annotations

from typing import Optional

from ..domain.entities import ChannelState, LockedPromise, Promise
from ..domain.errors import SignatureMismatchError, SigningError
from .encoding import Field, HexOrBytes, encode_fields, hash_message, to_bytes
from .keys import Identity, RandomSource, default_random_source
from .signatures import verify_signature

DEFAULT_CHAIN_ID = 1


def promise_fields(
    chain_id: int, channel_id: HexOrBytes, amount: int, fee: int, hashlock: HexOrBytes
) -> list[Field]:
    return [
        ("uint256", chain_id),
        ("word", channel_id),
        ("uint256", amount),
        ("uint256", fee),
        ("bytes32", hashlock),
    ]


def encode_promise(
    chain_id: int, channel_id: HexOrBytes, amount: int, fee: int, hashlock: HexOrBytes
) -> bytes:
    return encode_fields(promise_fields(chain_id, channel_id, amount, fee, hashlock))


def create_promise(
    chain_id: int,
    channel_id: str,
    amount: int,
    fee: int,
    hashlock: HexOrBytes,
    signer: Identity,
    receiver: Optional[str] = None,
) -> Promise:
    """Sign a promise for ``amount`` on ``channel_id``.

    Raises:
        SigningError: If the produced signature does not verify against the signer.
    """
    message = encode_promise(chain_id, channel_id, amount, fee, hashlock)
    signature = signer.sign(message)
    if not verify_signature(message, signature, signer.address):
        raise SigningError(f"Signature by {signer.address} over promise does not verify")

    return Promise(
        chain_id=chain_id,
        channel_id=channel_id,
        amount=amount,
        fee=fee,
        hashlock=to_bytes(hashlock),
        hash=hash_message(message),
        signature=signature,
        identity=receiver,
    )


def validate_promise(promise: Promise, expected_signer: str) -> None:
    """Rebuild the promise message and check it was signed by ``expected_signer``.

    Raises:
        SignatureMismatchError: If the signature or the stored hash does not match.
    """
    message = encode_promise(
        promise.chain_id,
        promise.channel_id,
        promise.amount,
        promise.fee,
        promise.hashlock,
    )
    if hash_message(message) != promise.hash:
        raise SignatureMismatchError("Promise hash does not match its fields")
    if not verify_signature(message, promise.signature, expected_signer):
        raise SignatureMismatchError(
            f"Promise on channel {promise.channel_id} is not signed by {expected_signer}"
        )


def generate_promise(
    amount_to_pay: int,
    fee: int,
    channel_state: ChannelState,
    signer: Identity,
    receiver: Optional[str] = None,
    *,
    chain_id: int = DEFAULT_CHAIN_ID,
    random_source: RandomSource = default_random_source,
) -> LockedPromise:
    """Invoice and promise in one step, returning the promise with its preimage.

    The amount is ``channel_state.settled + amount_to_pay + fee``.
    """
    if channel_state.channel_id is None:
        raise ValueError("Channel state has no channel id")

    amount = channel_state.settled + amount_to_pay + fee
    preimage = random_source(32)
    promise = create_promise(
        chain_id,
        channel_state.channel_id,
        amount,
        fee,
        hash_message(preimage),
        signer,
        receiver,
    )
    return LockedPromise(**promise.model_dump(), lock=preimage)
