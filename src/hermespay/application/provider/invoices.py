"""Provider-side invoice ledger."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Set

from ...crypto.encoding import hash_message
from ...crypto.keys import RandomSource, default_random_source
from ...domain.entities import Invoice
from ...domain.errors import (
    AgreementMismatchError,
    HashlockCollisionError,
    HashlockReplayError,
    UnknownInvoiceError,
)

logger = logging.getLogger(__name__)


class InvoiceLedger:
    """Issues hash-locked invoices and keeps running totals per agreement.

    Invoices are keyed by hashlock. Agreement totals only ever grow: each
    invoice under an agreement adds its amount to the agreement's total.
    """

    def __init__(self, random_source: RandomSource = default_random_source) -> None:
        self._random_source = random_source
        self._invoices: Dict[bytes, Invoice] = {}
        self._agreements: Dict[int, int] = {}
        self._matched: Set[bytes] = set()
        self._last_agreement_id = 0
        self._lock = threading.Lock()

    @property
    def last_agreement_id(self) -> int:
        return self._last_agreement_id

    def agreement_total(self, agreement_id: int) -> int:
        return self._agreements.get(agreement_id, 0)

    def get_invoice(self, hashlock: bytes) -> Optional[Invoice]:
        return self._invoices.get(hashlock)

    def is_matched(self, hashlock: bytes) -> bool:
        return hashlock in self._matched

    def generate_invoice(
        self,
        amount: int,
        agreement_id: Optional[int] = None,
        fee: int = 0,
        preimage: Optional[bytes] = None,
    ) -> Invoice:
        """Issue an invoice for ``amount`` more under ``agreement_id``.

        Without an agreement id a new agreement is opened. An agreement id the
        ledger has not seen yet starts at ``amount``.

        Raises:
            HashlockCollisionError: If an invoice with the same hashlock is outstanding.
        """
        if amount < 0:
            raise ValueError(f"Invoice amount must be non-negative, got {amount}")
        if fee < 0:
            raise ValueError(f"Invoice fee must be non-negative, got {fee}")

        if preimage is None:
            preimage = self._random_source(32)
        if len(preimage) != 32:
            raise ValueError(f"Preimage must be 32 bytes, got {len(preimage)}")
        hashlock = hash_message(preimage)

        with self._lock:
            if hashlock in self._invoices:
                raise HashlockCollisionError(
                    f"Invoice with hashlock 0x{hashlock.hex()} already exists"
                )

            if agreement_id is None:
                self._last_agreement_id += 1
                agreement_id = self._last_agreement_id
                self._agreements[agreement_id] = 0

            agreement_total = self._agreements.get(agreement_id, 0) + amount
            invoice = Invoice(
                preimage=preimage,
                hashlock=hashlock,
                agreement_id=agreement_id,
                agreement_total=agreement_total,
                fee=fee,
            )
            self._agreements[agreement_id] = agreement_total
            self._last_agreement_id = max(self._last_agreement_id, agreement_id)
            self._invoices[hashlock] = invoice

        logger.debug(
            "Issued invoice for agreement %s, total %s", agreement_id, agreement_total
        )
        return invoice

    def validate_invoice(
        self, hashlock: bytes, agreement_id: int, agreement_total: int
    ) -> Invoice:
        """Match a payment against an outstanding invoice, exactly once.

        The invoice is marked matched only when every check passes.

        Raises:
            UnknownInvoiceError: If no invoice has this hashlock.
            HashlockReplayError: If the invoice was already matched.
            AgreementMismatchError: If agreement id or total differ from the invoice.
        """
        with self._lock:
            invoice = self._invoices.get(hashlock)
            if invoice is None:
                raise UnknownInvoiceError(f"No invoice for hashlock 0x{hashlock.hex()}")
            if hashlock in self._matched:
                raise HashlockReplayError(
                    f"Invoice with hashlock 0x{hashlock.hex()} was already paid"
                )
            if invoice.agreement_id != agreement_id:
                raise AgreementMismatchError(
                    f"Invoice agreement id is {invoice.agreement_id}, got {agreement_id}"
                )
            if invoice.agreement_total != agreement_total:
                raise AgreementMismatchError(
                    f"Invoice agreement total is {invoice.agreement_total}, "
                    f"got {agreement_total}"
                )
            self._matched.add(hashlock)
        return invoice
