"""Consumer side of a payment channel: answers invoices with exchange messages."""

from __future__ import annotations

import logging
import threading
from typing import Dict

from ...crypto.exchange import sign_exchange_message
from ...crypto.keys import Identity
from ...crypto.promises import DEFAULT_CHAIN_ID, create_promise
from ...domain.entities import (
    ChannelState,
    ExchangeMessage,
    PaymentRequest,
    normalize_channel_id,
)
from ...domain.errors import AgreementMismatchError
from ...domain.shared import ChannelLedgerProtocol

logger = logging.getLogger(__name__)


class ConsumerAgent:
    """Tracks the consumer's own channel and signs ever-growing promises on it.

    The agent is the only writer of its channel state. ``promised`` advances
    only after an exchange message has been fully built and signed.
    """

    def __init__(
        self,
        identity: Identity,
        channel_id: str,
        *,
        chain_id: int = DEFAULT_CHAIN_ID,
    ) -> None:
        self.identity = identity
        self.channel_id = normalize_channel_id(channel_id)
        self.chain_id = chain_id
        self.channels: Dict[str, ChannelState] = {}
        self._lock = threading.Lock()

    @classmethod
    async def create(
        cls,
        channel_ledger: ChannelLedgerProtocol,
        identity: Identity,
        hermes_id: str,
        *,
        chain_id: int = DEFAULT_CHAIN_ID,
    ) -> "ConsumerAgent":
        """Build an agent for the channel the registry assigns to ``identity``."""
        channel_id = await channel_ledger.get_channel_address(identity.address, hermes_id)
        return cls(identity, channel_id, chain_id=chain_id)

    @property
    def channel_state(self) -> ChannelState:
        """Copy of the current channel state."""
        state = self.channels.get(self.channel_id)
        if state is None:
            return ChannelState(channel_id=self.channel_id)
        return state.model_copy(deep=True)

    def create_exchange_msg(
        self, invoice: PaymentRequest, party: str
    ) -> ExchangeMessage:
        """Promise enough to cover ``invoice`` and sign it for ``party``.

        An agreement the consumer has not seen before is opened at zero.

        Raises:
            AgreementMismatchError: If the invoiced total is below what was already promised
                under the agreement.
        """
        with self._lock:
            state = self.channel_state
            agreement_id = invoice.agreement_id

            if not state.has_agreement(agreement_id):
                logger.debug(
                    "Opening agreement %s on channel %s", agreement_id, self.channel_id
                )
            covered = state.agreement_total(agreement_id)
            if invoice.agreement_total < covered:
                raise AgreementMismatchError(
                    f"Agreement {agreement_id} total {invoice.agreement_total} "
                    f"is below already promised {covered}"
                )

            diff = invoice.agreement_total - covered
            amount = state.promised + diff + invoice.fee
            promise = create_promise(
                self.chain_id,
                self.channel_id,
                amount,
                invoice.fee,
                invoice.hashlock,
                self.identity,
            )
            exchange_msg = sign_exchange_message(
                promise,
                agreement_id,
                invoice.agreement_total,
                party,
                self.identity,
            )

            state.agreements[agreement_id] = invoice.agreement_total
            state.promised = amount
            self.channels[self.channel_id] = state

        return exchange_msg
