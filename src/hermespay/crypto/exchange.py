"""Exchange message signing.

An exchange message is a signature over

    promiseHash (bytes32) || agreementId (uint256) || agreementTotal (uint256) || party (address)

binding a promise to one agreement and one receiving party.
"""

from __future__ import annotations

from ..domain.entities import ExchangeMessage, Promise
from ..domain.errors import SignatureMismatchError, SigningError
from .encoding import encode_fields, hash_message
from .keys import Identity
from .signatures import verify_signature


def encode_exchange_message(
    promise_hash: bytes, agreement_id: int, agreement_total: int, party: str
) -> bytes:
    return encode_fields(
        [
            ("bytes32", promise_hash),
            ("uint256", agreement_id),
            ("uint256", agreement_total),
            ("address", party),
        ]
    )


def sign_exchange_message(
    promise: Promise,
    agreement_id: int,
    agreement_total: int,
    party: str,
    signer: Identity,
) -> ExchangeMessage:
    message = encode_exchange_message(promise.hash, agreement_id, agreement_total, party)
    signature = signer.sign(message)
    if not verify_signature(message, signature, signer.address):
        raise SigningError(
            f"Signature by {signer.address} over exchange message does not verify"
        )
    return ExchangeMessage(
        promise=promise,
        agreement_id=agreement_id,
        agreement_total=agreement_total,
        party=party,
        hash=hash_message(message),
        signature=signature,
    )


def verify_exchange_signature(exchange_msg: ExchangeMessage, payer: str) -> None:
    """Raises SignatureMismatchError unless ``payer`` signed the exchange message."""
    message = encode_exchange_message(
        exchange_msg.promise.hash,
        exchange_msg.agreement_id,
        exchange_msg.agreement_total,
        exchange_msg.party,
    )
    if not verify_signature(message, exchange_msg.signature, payer):
        raise SignatureMismatchError(f"Exchange message is not signed by {payer}")
