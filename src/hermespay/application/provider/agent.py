"""Provider side of a payment channel: invoices, accepts promises and settles them."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from ...crypto.keys import Identity
from ...crypto.promises import validate_promise
from ...domain.entities import ExchangeMessage, Invoice, Promise
from ...domain.errors import UnknownInvoiceError
from ...domain.shared import ChannelLedgerProtocol
from ..shared.exchange_validators import validate_exchange_message
from .invoices import InvoiceLedger

logger = logging.getLogger(__name__)


class ProviderAgent:
    """Service provider receiving promises for its invoices."""

    def __init__(
        self,
        identity: Identity,
        channel_ledger: Optional[ChannelLedgerProtocol] = None,
        invoices: Optional[InvoiceLedger] = None,
    ) -> None:
        self.identity = identity
        self.channel_ledger = channel_ledger
        self.invoices = invoices if invoices is not None else InvoiceLedger()
        self._promises: List[Promise] = []
        self._lock = threading.Lock()

    @property
    def address(self) -> str:
        return self.identity.address

    @property
    def promises(self) -> List[Promise]:
        return list(self._promises)

    def generate_invoice(
        self,
        amount: int,
        agreement_id: Optional[int] = None,
        fee: int = 0,
        preimage: Optional[bytes] = None,
    ) -> Invoice:
        return self.invoices.generate_invoice(amount, agreement_id, fee, preimage)

    def validate_exchange_message(self, exchange_msg: ExchangeMessage, payer: str) -> None:
        """Reject the message unless it is addressed to this provider and matches an invoice."""
        validate_exchange_message(self.address, exchange_msg, payer, self.invoices)

    def accept_promise(self, promise: Promise, signer: str) -> None:
        """Validate a promise issued by ``signer`` (usually hermes) and keep it."""
        validate_promise(promise, signer)
        self.save_promise(promise)

    def save_promise(self, promise: Promise) -> None:
        with self._lock:
            self._promises.append(promise)

    def get_biggest_promise(self) -> Optional[Promise]:
        """The promise with the largest amount, which supersedes all others."""
        with self._lock:
            if not self._promises:
                return None
            return max(self._promises, key=lambda promise: promise.amount)

    async def settle_promise(self, promise: Optional[Promise] = None) -> str:
        """Redeem one promise on-chain with its invoice preimage.

        Defaults to the biggest stored promise.

        Raises:
            UnknownInvoiceError: If the promise's hashlock belongs to no invoice.
            ValueError: If there is nothing to settle or no ledger is configured.
        """
        if self.channel_ledger is None:
            raise ValueError("Provider has no channel ledger configured")
        if promise is None:
            promise = self.get_biggest_promise()
        if promise is None:
            raise ValueError("No promises to settle")

        invoice = self.invoices.get_invoice(promise.hashlock)
        if invoice is None:
            raise UnknownInvoiceError(
                f"No invoice for hashlock 0x{promise.hashlock.hex()}"
            )

        tx_hash = await self.channel_ledger.settle(
            promise.identity or self.address,
            promise.amount,
            promise.fee,
            invoice.preimage,
            promise.signature,
        )
        logger.info(
            "Settled promise of %s on channel %s in tx %s",
            promise.amount,
            promise.channel_id,
            tx_hash,
        )
        return tx_hash
