"""Validation of incoming exchange messages, shared by providers and hermes."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from eth_utils import to_checksum_address

from ...crypto.exchange import verify_exchange_signature
from ...crypto.promises import validate_promise
from ...domain.entities import ExchangeMessage
from ...domain.errors import ReceiverMismatchError

if TYPE_CHECKING:
    from ..provider.invoices import InvoiceLedger


def validate_exchange_message(
    receiver: str,
    exchange_msg: ExchangeMessage,
    payer: str,
    invoices: Optional["InvoiceLedger"] = None,
) -> None:
    """Accept an exchange message only if every check passes.

    Args:
        receiver: Address of the party validating the message
        exchange_msg: Message received from the payer
        payer: Address expected to have signed both the message and its promise
        invoices: Invoice ledger to match the promise hashlock against, if any

    Raises:
        SignatureMismatchError: If the message or promise is not signed by ``payer``.
        ReceiverMismatchError: If the message was signed for another party.
        UnknownInvoiceError: If ``invoices`` has no invoice for the hashlock.
        HashlockReplayError: If ``invoices`` already matched a payment for the hashlock.
        AgreementMismatchError: If the agreement id or total differ from the invoice.
    """
    verify_exchange_signature(exchange_msg, payer)

    if to_checksum_address(receiver) != exchange_msg.party:
        raise ReceiverMismatchError(
            f"Exchange message is for {exchange_msg.party}, not {receiver}"
        )

    validate_promise(exchange_msg.promise, payer)

    if invoices is not None:
        invoices.validate_invoice(
            exchange_msg.promise.hashlock,
            exchange_msg.agreement_id,
            exchange_msg.agreement_total,
        )
